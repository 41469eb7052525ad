from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from moviedb.database import get_db
from moviedb.models.user import User
from moviedb.schemas.auth import UserResponse
from moviedb.schemas.user import UserFieldUpdateBody
from moviedb.services.invalidation import InvalidationDispatcher, get_invalidation_dispatcher
from moviedb.services.user_service import UserService
from moviedb.utils.dependencies import get_optional_user
from moviedb.utils.responses import action_response

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.patch("/me", response_model=UserResponse)
def edit_me(
    update: UserFieldUpdateBody,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    dispatcher: InvalidationDispatcher = Depends(get_invalidation_dispatcher)
):
    """
    Change one profile field: name, email, image or gh_username

    Body: {"field": "<name>", "value": ...}
    """
    return action_response(UserService.edit_user(db, current_user, update, dispatcher))
