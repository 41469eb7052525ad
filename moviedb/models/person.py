"""
Actor and Director models plus their join rows with movies.
Both tables share the same columns; neither has an owner.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship
from moviedb.database import Base


class Actor(Base):
    __tablename__ = "actor"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), index=True)
    image = Column(String(500))
    age = Column(Integer)

    movie_actors = relationship("MovieActor", back_populates="actor", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Actor(id={self.id}, name='{self.name}')>"


class Director(Base):
    __tablename__ = "director"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), index=True)
    image = Column(String(500))
    age = Column(Integer)

    movie_directors = relationship("MovieDirector", back_populates="director", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Director(id={self.id}, name='{self.name}')>"


class MovieActor(Base):
    __tablename__ = "movie_actors"

    id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False)
    actor_id = Column(Integer, ForeignKey("actor.id", ondelete="CASCADE"), nullable=False)

    movie = relationship("Movie", back_populates="movie_actors")
    actor = relationship("Actor", back_populates="movie_actors")

    __table_args__ = (
        Index("ix_movie_actors_movie_actor", "movie_id", "actor_id"),
    )


class MovieDirector(Base):
    __tablename__ = "movie_directors"

    id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False)
    director_id = Column(Integer, ForeignKey("director.id", ondelete="CASCADE"), nullable=False)

    movie = relationship("Movie", back_populates="movie_directors")
    director = relationship("Director", back_populates="movie_directors")

    __table_args__ = (
        Index("ix_movie_directors_movie_director", "movie_id", "director_id"),
    )
