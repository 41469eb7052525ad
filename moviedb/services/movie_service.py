"""
Movie Service - owner-scoped movie mutations and credits

Every mutation returns the affected row or an ActionError, and dispatches
cache invalidations only after its commit succeeded.
"""

from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from moviedb.models.movie import Movie
from moviedb.models.person import Actor, Director, MovieActor, MovieDirector
from moviedb.models.user import User
from moviedb.schemas.common import ActionError, ActionResult
from moviedb.schemas.movie import (
    ActorCreditResponse,
    DeletedMovie,
    DirectorCreditResponse,
    MovieFieldUpdate,
    MovieUpdate,
)
from moviedb.services.invalidation import Effect, InvalidationDispatcher, Relation
from moviedb.utils.cache_tags import EntityType
from moviedb.utils.guards import with_movie_auth
from moviedb.utils.transactions import commit_or_error

logger = logging.getLogger(__name__)


class MovieService:
    """Service for movie operations"""

    @staticmethod
    def create_movie(
        db: Session,
        user: Optional[User],
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[Movie]:
        """Create an empty, unpublished movie owned by the user"""
        if user is None:
            return ActionError.not_authenticated()

        movie = Movie(user_id=user.id)
        db.add(movie)
        error = commit_or_error(db)
        if error:
            return error

        db.refresh(movie)
        logger.info(f"User {user.id} created movie {movie.id}")
        dispatcher.on_mutation(EntityType.MOVIE, movie.id, Effect.CREATED)
        return movie

    @staticmethod
    def update_movie(
        db: Session,
        user: Optional[User],
        movie_id: int,
        data: MovieUpdate,
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[Movie]:
        """
        Save the editor fields (title, description, content) at once.

        Unlike the metadata update this is not guarded by with_movie_auth;
        a missing or foreign movie reports "Post not found".
        """
        if user is None:
            return ActionError.not_authenticated()

        movie = db.query(Movie).filter(Movie.id == movie_id).first()
        if not movie or movie.user_id != user.id:
            return ActionError.not_found("Post not found")

        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(movie, key, value)

        error = commit_or_error(db)
        if error:
            return error

        db.refresh(movie)
        dispatcher.on_mutation(EntityType.MOVIE, movie.id, Effect.UPDATED)
        return movie

    @staticmethod
    @with_movie_auth
    def update_movie_metadata(
        db: Session,
        user: User,
        movie: Movie,
        update: MovieFieldUpdate,
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[Movie]:
        setattr(movie, update.field, update.value)

        conflict = "This slug is already in use" if update.field == "slug" else None
        error = commit_or_error(db, conflict)
        if error:
            return error

        db.refresh(movie)
        dispatcher.on_mutation(EntityType.MOVIE, movie.id, Effect.UPDATED)
        return movie

    @staticmethod
    @with_movie_auth
    def delete_movie(
        db: Session,
        user: User,
        movie: Movie,
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[DeletedMovie]:
        movie_id = movie.id
        deleted = DeletedMovie(slug=movie.slug)

        # Join rows go with the movie, so collect the credited people first
        relations = [Relation(EntityType.ACTOR, link.actor_id) for link in movie.movie_actors]
        relations += [Relation(EntityType.DIRECTOR, link.director_id) for link in movie.movie_directors]

        db.delete(movie)
        error = commit_or_error(db)
        if error:
            return error

        logger.info(f"User {user.id} deleted movie {movie_id}")
        dispatcher.on_mutation(EntityType.MOVIE, movie_id, Effect.DELETED, relations)
        return deleted

    # ==================== CREDITS ====================

    @staticmethod
    @with_movie_auth
    def add_actor_to_movie(
        db: Session,
        user: User,
        movie: Movie,
        actor_id: Optional[int],
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[MovieActor]:
        if not actor_id:
            return ActionError.validation("Actor ID is required")

        if not db.query(Actor).filter(Actor.id == actor_id).first():
            return ActionError.not_found("Actor not found")

        existing = db.query(MovieActor).filter(
            MovieActor.movie_id == movie.id,
            MovieActor.actor_id == actor_id
        ).first()
        if existing:
            return ActionError.conflict("Actor is already associated with this movie")

        link = MovieActor(movie_id=movie.id, actor_id=actor_id)
        db.add(link)
        error = commit_or_error(db)
        if error:
            return error

        db.refresh(link)
        dispatcher.on_mutation(
            EntityType.MOVIE, movie.id, Effect.UPDATED, [Relation(EntityType.ACTOR, actor_id)]
        )
        return link

    @staticmethod
    @with_movie_auth
    def remove_actor_from_movie(
        db: Session,
        user: User,
        movie: Movie,
        actor_id: Optional[int],
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[ActorCreditResponse]:
        if not actor_id:
            return ActionError.validation("Actor ID is required")

        link = db.query(MovieActor).filter(
            MovieActor.movie_id == movie.id,
            MovieActor.actor_id == actor_id
        ).first()
        if not link:
            return ActionError.not_found("Association not found")

        removed = ActorCreditResponse.model_validate(link)
        db.delete(link)
        error = commit_or_error(db)
        if error:
            return error

        dispatcher.on_mutation(
            EntityType.MOVIE, movie.id, Effect.UPDATED, [Relation(EntityType.ACTOR, actor_id)]
        )
        return removed

    @staticmethod
    @with_movie_auth
    def add_director_to_movie(
        db: Session,
        user: User,
        movie: Movie,
        director_id: Optional[int],
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[MovieDirector]:
        if not director_id:
            return ActionError.validation("Director ID is required")

        if not db.query(Director).filter(Director.id == director_id).first():
            return ActionError.not_found("Director not found")

        existing = db.query(MovieDirector).filter(
            MovieDirector.movie_id == movie.id,
            MovieDirector.director_id == director_id
        ).first()
        if existing:
            return ActionError.conflict("Director is already associated with this movie")

        link = MovieDirector(movie_id=movie.id, director_id=director_id)
        db.add(link)
        error = commit_or_error(db)
        if error:
            return error

        db.refresh(link)
        dispatcher.on_mutation(
            EntityType.MOVIE, movie.id, Effect.UPDATED, [Relation(EntityType.DIRECTOR, director_id)]
        )
        return link

    @staticmethod
    @with_movie_auth
    def remove_director_from_movie(
        db: Session,
        user: User,
        movie: Movie,
        director_id: Optional[int],
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[DirectorCreditResponse]:
        if not director_id:
            return ActionError.validation("Director ID is required")

        link = db.query(MovieDirector).filter(
            MovieDirector.movie_id == movie.id,
            MovieDirector.director_id == director_id
        ).first()
        if not link:
            return ActionError.not_found("Association not found")

        removed = DirectorCreditResponse.model_validate(link)
        db.delete(link)
        error = commit_or_error(db)
        if error:
            return error

        dispatcher.on_mutation(
            EntityType.MOVIE, movie.id, Effect.UPDATED, [Relation(EntityType.DIRECTOR, director_id)]
        )
        return removed

    # ==================== DASHBOARD ====================

    @staticmethod
    def list_user_movies(db: Session, user_id: int) -> List[Movie]:
        """Movies owned by the user, drafts included (not cached)"""
        return db.query(Movie).filter(
            Movie.user_id == user_id
        ).order_by(
            Movie.created_at.desc()
        ).all()
