from sqlalchemy.orm import Session
from typing import Optional
import logging

from moviedb.models.movie import Movie
from moviedb.models.review import Review
from moviedb.models.user import User
from moviedb.schemas.common import ActionError, ActionResult
from moviedb.schemas.review import ReviewCreate, ReviewUpdate
from moviedb.schemas.validation import clean_user_text
from moviedb.services.invalidation import Effect, InvalidationDispatcher, Relation
from moviedb.utils.cache_tags import EntityType
from moviedb.utils.transactions import commit_or_error

logger = logging.getLogger(__name__)

MIN_REVIEW_LENGTH = 10


def _checked_content(raw: str):
    content = clean_user_text(raw)
    if len(content) < MIN_REVIEW_LENGTH:
        return None, ActionError.validation(f"Review must be at least {MIN_REVIEW_LENGTH} characters")
    return content, None


class ReviewService:
    """One review per user and movie; only the author may change it"""

    @staticmethod
    def add_review(
        db: Session,
        user: Optional[User],
        data: ReviewCreate,
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[Review]:
        if user is None:
            return ActionError.not_authenticated()

        content, error = _checked_content(data.content)
        if error:
            return error

        if not db.query(Movie).filter(Movie.id == data.movie_id).first():
            return ActionError.not_found("Movie not found")

        existing = db.query(Review).filter(
            Review.user_id == user.id,
            Review.movie_id == data.movie_id
        ).first()
        if existing:
            return ActionError.conflict("You have already reviewed this movie")

        review = Review(user_id=user.id, movie_id=data.movie_id, content=content, rating=data.rating)
        db.add(review)
        error = commit_or_error(db, "You have already reviewed this movie")
        if error:
            return error

        db.refresh(review)
        dispatcher.on_mutation(
            EntityType.REVIEW, review.id, Effect.CREATED, [Relation(EntityType.MOVIE, review.movie_id)]
        )
        return review

    @staticmethod
    def update_review(
        db: Session,
        user: Optional[User],
        review_id: int,
        data: ReviewUpdate,
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[Review]:
        if user is None:
            return ActionError.not_authenticated()

        review = db.query(Review).filter(Review.id == review_id).first()
        if not review or review.user_id != user.id:
            return ActionError.not_found("Review not found")

        content, error = _checked_content(data.content)
        if error:
            return error

        review.content = content
        if "rating" in data.model_fields_set:
            review.rating = data.rating

        error = commit_or_error(db)
        if error:
            return error

        db.refresh(review)
        dispatcher.on_mutation(
            EntityType.REVIEW, review.id, Effect.UPDATED, [Relation(EntityType.MOVIE, review.movie_id)]
        )
        return review

    @staticmethod
    def delete_review(
        db: Session,
        user: Optional[User],
        review_id: int,
        dispatcher: InvalidationDispatcher,
    ) -> Optional[ActionError]:
        if user is None:
            return ActionError.not_authenticated()

        review = db.query(Review).filter(Review.id == review_id).first()
        if not review or review.user_id != user.id:
            return ActionError.not_found("Review not found")

        movie_id = review.movie_id
        db.delete(review)
        error = commit_or_error(db)
        if error:
            return error

        dispatcher.on_mutation(
            EntityType.REVIEW, review_id, Effect.DELETED, [Relation(EntityType.MOVIE, movie_id)]
        )
        return None
