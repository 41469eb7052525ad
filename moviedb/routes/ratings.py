"""
Rating Routes - API endpoints for movie rating system
"""

from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from moviedb.database import get_db
from moviedb.models.user import User
from moviedb.schemas.rating import RatingCreate, RatingResponse
from moviedb.services.invalidation import InvalidationDispatcher, get_invalidation_dispatcher
from moviedb.services.rating_service import RatingService
from moviedb.utils.dependencies import get_optional_user
from moviedb.utils.responses import action_response

router = APIRouter(prefix="/api/ratings", tags=["Ratings"])


@router.post("/", response_model=RatingResponse)
def add_or_update_rating(
    rating_data: RatingCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    """
    Add a new rating or update existing one for a movie

    - **movie_id**: Movie ID (required)
    - **rating**: Rating value from 1 to 5 (required)

    If user has already rated this movie, the rating will be updated.
    """
    return action_response(RatingService.add_or_update_rating(db, current_user, rating_data, dispatcher))


@router.delete("/{rating_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rating(
    rating_id: int = Path(..., description="Rating ID to delete", gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    """
    Delete a rating by ID

    Only the user who created the rating can delete it.
    """
    error = RatingService.delete_rating(db, current_user, rating_id, dispatcher)
    if error:
        return action_response(error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
