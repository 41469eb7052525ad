from typing import Optional
import logging

from sqlalchemy.orm import Session

from moviedb.models.user import User
from moviedb.schemas.common import ActionError, ActionResult
from moviedb.schemas.user import UserFieldUpdate
from moviedb.services.invalidation import Effect, InvalidationDispatcher
from moviedb.utils.cache_tags import EntityType
from moviedb.utils.transactions import commit_or_error

logger = logging.getLogger(__name__)


class UserService:
    @staticmethod
    def edit_user(
        db: Session,
        user: Optional[User],
        update: UserFieldUpdate,
        dispatcher: InvalidationDispatcher,
    ) -> ActionResult[User]:
        """Change one profile field of the signed-in user"""
        if user is None:
            return ActionError.not_authenticated()

        setattr(user, update.field, update.value)
        error = commit_or_error(db, f"This {update.field} is already in use")
        if error:
            return error

        db.refresh(user)
        dispatcher.on_mutation(EntityType.USER, user.id, Effect.UPDATED)
        return user
