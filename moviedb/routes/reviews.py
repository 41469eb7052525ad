from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from moviedb.database import get_db
from moviedb.models.user import User
from moviedb.schemas.review import ReviewCreate, ReviewResponse, ReviewUpdate
from moviedb.services.invalidation import InvalidationDispatcher, get_invalidation_dispatcher
from moviedb.services.review_service import ReviewService
from moviedb.utils.dependencies import get_optional_user
from moviedb.utils.responses import action_response

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def add_review(
    data: ReviewCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    """Review a movie (once per user, at least 10 characters)"""
    return action_response(ReviewService.add_review(db, current_user, data, dispatcher))


@router.patch("/{review_id}", response_model=ReviewResponse)
def update_review(
    data: ReviewUpdate,
    review_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    return action_response(ReviewService.update_review(db, current_user, review_id, data, dispatcher))


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: int = Path(..., gt=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    error = ReviewService.delete_review(db, current_user, review_id, dispatcher)
    if error:
        return action_response(error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
