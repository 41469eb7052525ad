import enum
import secrets

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from moviedb.database import Base

SLUG_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"


def generate_slug(length: int = 7) -> str:
    """Random slug for a freshly created, untitled movie"""
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


class Genre(str, enum.Enum):
    ACTION = "Action"
    ADVENTURE = "Adventure"
    COMEDY = "Comedy"
    DRAMA = "Drama"
    FANTASY = "Fantasy"
    HORROR = "Horror"
    MYSTERY = "Mystery"
    ROMANCE = "Romance"
    THRILLER = "Thriller"
    WESTERN = "Western"


class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True, default=generate_slug)
    title = Column(String(500))
    description = Column(Text)
    content = Column(Text)
    image = Column(String(500))
    genre = Column(Enum(Genre, name="genres", values_callable=lambda e: [g.value for g in e]))
    rating = Column(Integer)
    published = Column(Boolean, default=False, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="movies")
    ratings = relationship("Rating", back_populates="movie", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="movie", cascade="all, delete-orphan")
    movie_actors = relationship("MovieActor", back_populates="movie", cascade="all, delete-orphan")
    movie_directors = relationship("MovieDirector", back_populates="movie", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Movie(id={self.id}, slug='{self.slug}', title='{self.title}')>"
