from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class ReviewCreate(BaseModel):
    movie_id: int = Field(..., gt=0)
    content: str
    rating: Optional[int] = Field(None, ge=1, le=5)


class ReviewUpdate(BaseModel):
    content: str
    rating: Optional[int] = Field(None, ge=1, le=5)


class ReviewResponse(BaseModel):
    id: int
    user_id: int
    movie_id: int
    content: str
    rating: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
