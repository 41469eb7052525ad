"""
Rating Service - Handle all rating-related business logic
"""

from sqlalchemy.orm import Session
from typing import Optional
import logging

from moviedb.models.movie import Movie
from moviedb.models.rating import Rating
from moviedb.models.user import User
from moviedb.schemas.common import ActionError, ActionResult
from moviedb.schemas.rating import RatingCreate
from moviedb.services.invalidation import Effect, InvalidationDispatcher, Relation
from moviedb.utils.cache_tags import EntityType
from moviedb.utils.transactions import commit_or_error

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class RatingService:
    """Service for movie rating operations"""

    @staticmethod
    def add_or_update_rating(
        db: Session,
        user: Optional[User],
        rating_data: RatingCreate,
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[Rating]:
        """
        Add a new rating or update existing one

        Args:
            db: Database session
            user: Signed-in user, or None
            rating_data: RatingCreate schema with movie_id and rating value
            dispatcher: Invalidation dispatcher for the request

        Returns:
            Rating object, or ActionError
        """
        if user is None:
            return ActionError.not_authenticated()

        if rating_data.rating < MIN_RATING or rating_data.rating > MAX_RATING:
            return ActionError.validation(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        if not db.query(Movie).filter(Movie.id == rating_data.movie_id).first():
            return ActionError.not_found("Movie not found")

        rating = db.query(Rating).filter(
            Rating.user_id == user.id,
            Rating.movie_id == rating_data.movie_id
        ).first()

        if rating:
            rating.rating = rating_data.rating
            effect = Effect.UPDATED
        else:
            rating = Rating(
                user_id=user.id,
                movie_id=rating_data.movie_id,
                rating=rating_data.rating
            )
            db.add(rating)
            effect = Effect.CREATED

        error = commit_or_error(db)
        if error:
            return error

        db.refresh(rating)
        dispatcher.on_mutation(
            EntityType.RATING, rating.id, effect, [Relation(EntityType.MOVIE, rating.movie_id)]
        )
        return rating

    @staticmethod
    def delete_rating(
        db: Session,
        user: Optional[User],
        rating_id: int,
        dispatcher: InvalidationDispatcher,
    ) -> Optional[ActionError]:
        """Delete one of the user's own ratings"""
        if user is None:
            return ActionError.not_authenticated()

        rating = db.query(Rating).filter(
            Rating.id == rating_id,
            Rating.user_id == user.id
        ).first()

        if not rating:
            return ActionError.not_found("Rating not found")

        movie_id = rating.movie_id
        db.delete(rating)
        error = commit_or_error(db)
        if error:
            return error

        dispatcher.on_mutation(
            EntityType.RATING, rating_id, Effect.DELETED, [Relation(EntityType.MOVIE, movie_id)]
        )
        return None
