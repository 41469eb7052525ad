from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from moviedb.database import get_db
from moviedb.utils.security import decode_token
from moviedb.models.user import User

# Missing credentials are not an error here: public reads work anonymously
# and mutations report "Not authenticated" themselves.
security = HTTPBearer(auto_error=False)


def _user_from_token(db: Session, token: str) -> Optional[User]:
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        return None

    user = db.query(User).filter(User.id == payload.get("user_id")).first()
    if not user or not user.is_active:
        return None
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Current session's user, or None for anonymous/invalid tokens"""
    if credentials is None:
        return None
    return _user_from_token(db, credentials.credentials)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = _user_from_token(db, credentials.credentials)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user


def get_user_id(user: Optional[User]) -> Optional[int]:
    """Helper to extract user_id as int for type safety"""
    return int(user.id) if user is not None else None  # type: ignore
