"""
Person Schemas - shared by actors and directors
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from fastapi import Body
from pydantic import BaseModel, ConfigDict, Field

from moviedb.models.movie import Genre
from moviedb.schemas.common import Pagination
from moviedb.schemas.movie import OwnerSummary


class PersonNameUpdate(BaseModel):
    field: Literal["name"]
    value: str = Field(..., min_length=1, max_length=255)


class PersonImageUpdate(BaseModel):
    field: Literal["image"]
    value: Optional[str] = Field(None, max_length=500)


class PersonAgeUpdate(BaseModel):
    field: Literal["age"]
    value: Optional[int] = Field(None, ge=0, le=150)


PersonFieldUpdate = Union[PersonNameUpdate, PersonImageUpdate, PersonAgeUpdate]

PersonFieldUpdateBody = Annotated[PersonFieldUpdate, Body(discriminator="field")]


class PersonResponse(BaseModel):
    id: int
    name: Optional[str] = None
    image: Optional[str] = None
    age: Optional[int] = None
    model_config = ConfigDict(from_attributes=True)


class FilmographyEntry(BaseModel):
    id: int
    slug: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    genre: Optional[Genre] = None
    created_at: Optional[datetime] = None
    average_rating: Optional[float] = None
    rating_count: int = 0
    user: Optional[OwnerSummary] = None


class Filmography(BaseModel):
    movies: List[FilmographyEntry]
    pagination: Pagination


class PersonDetail(BaseModel):
    person: PersonResponse
    top_movies: List[FilmographyEntry]
    all_movies: Filmography


class DeletedPerson(BaseModel):
    id: int
