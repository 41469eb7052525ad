"""
Import all models to ensure they are registered with SQLAlchemy
"""
from moviedb.models.user import User
from moviedb.models.movie import Movie, Genre
from moviedb.models.person import Actor, Director, MovieActor, MovieDirector
from moviedb.models.rating import Rating
from moviedb.models.review import Review

__all__ = [
    "User",
    "Movie",
    "Genre",
    "Actor",
    "Director",
    "MovieActor",
    "MovieDirector",
    "Rating",
    "Review",
]
