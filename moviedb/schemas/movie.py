"""
Movie Schemas - request bodies and responses for movies and their credits
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from fastapi import Body
from pydantic import BaseModel, ConfigDict, Field, field_validator

from moviedb.models.movie import Genre
from moviedb.schemas.common import Pagination


# ==================== REQUESTS ====================

class MovieUpdate(BaseModel):
    """Full edit of the editor fields"""
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    content: Optional[str] = None


class MovieTitleUpdate(BaseModel):
    field: Literal["title"]
    value: Optional[str] = Field(None, max_length=500)


class MovieDescriptionUpdate(BaseModel):
    field: Literal["description"]
    value: Optional[str] = None


class MovieContentUpdate(BaseModel):
    field: Literal["content"]
    value: Optional[str] = None


class MovieSlugUpdate(BaseModel):
    field: Literal["slug"]
    value: str = Field(..., min_length=1, max_length=255)

    @field_validator("value")
    @classmethod
    def validate_slug(cls, v):
        v = v.strip()
        if not v or "/" in v:
            raise ValueError("Slug cannot be empty or contain '/'")
        return v


class MovieImageUpdate(BaseModel):
    field: Literal["image"]
    value: Optional[str] = Field(None, max_length=500)


class MovieGenreUpdate(BaseModel):
    field: Literal["genre"]
    value: Optional[Genre] = None


class MoviePublishedUpdate(BaseModel):
    field: Literal["published"]
    value: bool


MovieFieldUpdate = Union[
    MovieTitleUpdate,
    MovieDescriptionUpdate,
    MovieContentUpdate,
    MovieSlugUpdate,
    MovieImageUpdate,
    MovieGenreUpdate,
    MoviePublishedUpdate,
]

MovieFieldUpdateBody = Annotated[MovieFieldUpdate, Body(discriminator="field")]


class ActorCreditRequest(BaseModel):
    actor_id: Optional[int] = None


class DirectorCreditRequest(BaseModel):
    director_id: Optional[int] = None


# ==================== RESPONSES ====================

class OwnerSummary(BaseModel):
    id: int
    name: Optional[str] = None
    image: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class MovieResponse(BaseModel):
    id: int
    slug: str
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None
    genre: Optional[Genre] = None
    rating: Optional[int] = None
    published: bool
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class MovieCard(BaseModel):
    """Published movie as shown in home lists and sitemaps"""
    id: int
    slug: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    genre: Optional[Genre] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[OwnerSummary] = None
    model_config = ConfigDict(from_attributes=True)


class RankedMovie(BaseModel):
    id: int
    slug: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    genre: Optional[Genre] = None
    created_at: Optional[datetime] = None
    average_rating: Optional[float] = None
    rating_count: int = 0
    user_rating: Optional[int] = None
    user: Optional[OwnerSummary] = None


class RankedMovies(BaseModel):
    movies: List[RankedMovie]
    pagination: Pagination


class RatingSummary(BaseModel):
    average: Optional[float] = None
    count: int = 0
    user_rating: Optional[int] = None
    user_rating_id: Optional[int] = None


class ReviewEntry(BaseModel):
    id: int
    content: str
    rating: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[OwnerSummary] = None
    is_author: bool = False


class MovieDetail(MovieResponse):
    user: Optional[OwnerSummary] = None
    ratings: RatingSummary
    reviews: List[ReviewEntry]
    adjacent_movies: List[MovieCard] = []


class DeletedMovie(BaseModel):
    slug: str


class ActorCreditResponse(BaseModel):
    id: int
    movie_id: int
    actor_id: int
    model_config = ConfigDict(from_attributes=True)


class DirectorCreditResponse(BaseModel):
    id: int
    movie_id: int
    director_id: int
    model_config = ConfigDict(from_attributes=True)
