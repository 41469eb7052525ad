"""
Authorization guards for mutations.

Each guard wraps a service function of the form ``func(db, user, entity, ...)``
and exposes it as ``func(db, user, entity_id, ...)``: it checks the session,
loads the entity and hands it over, or returns an ActionError without calling
the wrapped function.

Actors and directors have no owner, so their guards only check that a user is
signed in and that the row exists. Any signed-in user may edit or delete any
actor or director.
"""
from functools import wraps
from typing import Optional

from sqlalchemy.orm import Session

from moviedb.models.movie import Movie
from moviedb.models.person import Actor, Director
from moviedb.models.user import User
from moviedb.schemas.common import ActionError


def with_movie_auth(func):
    @wraps(func)
    def wrapper(db: Session, user: Optional[User], movie_id: int, *args, **kwargs):
        if user is None:
            return ActionError.not_authenticated()

        movie = db.query(Movie).filter(Movie.id == movie_id).first()
        if not movie or movie.user_id != user.id:
            return ActionError.not_found("movie not found")

        return func(db, user, movie, *args, **kwargs)

    return wrapper


def _with_person_auth(model, label: str):
    def guard(func):
        @wraps(func)
        def wrapper(db: Session, user: Optional[User], person_id: int, *args, **kwargs):
            if user is None:
                return ActionError.not_authenticated()

            person = db.query(model).filter(model.id == person_id).first()
            if not person:
                return ActionError.not_found(f"{label} not found")

            return func(db, user, person, *args, **kwargs)

        return wrapper

    return guard


with_actor_auth = _with_person_auth(Actor, "actor")
with_director_auth = _with_person_auth(Director, "director")
