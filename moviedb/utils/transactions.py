from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from moviedb.schemas.common import ActionError

logger = logging.getLogger(__name__)


def commit_or_error(db: Session, conflict_message: Optional[str] = None) -> Optional[ActionError]:
    """
    Commit the session, or roll back and describe the failure.

    Returns:
        None on success; CONFLICT for constraint violations (with
        conflict_message when given), GENERIC for any other database error
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info(f"Constraint violation: {str(e.orig)}")
        return ActionError.conflict(conflict_message or str(e.orig))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during commit: {str(e)}")
        return ActionError.generic(str(e))
    return None
