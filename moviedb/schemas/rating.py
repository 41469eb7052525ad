"""
Rating Schemas - Pydantic models for rating request/response validation
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class RatingCreate(BaseModel):
    """Schema for creating/updating a rating"""
    movie_id: int = Field(..., description="Movie ID", gt=0)
    # Range is checked by RatingService so the error message stays user-facing
    rating: int = Field(..., description="Rating value (1-5)")


class RatingResponse(BaseModel):
    """Schema for rating response (matches database model)"""
    id: int
    user_id: int
    movie_id: int
    rating: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
