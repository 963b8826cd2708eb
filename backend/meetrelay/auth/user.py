"""Host identity resolution for request handlers."""
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from meetrelay.constants import UserRole
from meetrelay.database import get_db
from meetrelay.models.user import User
from meetrelay.utils.exceptions import authentication_error, forbidden_error


def _load_user(db: Session, user_id: Optional[str]) -> Optional[User]:
    if not user_id:
        return None
    try:
        return db.get(User, int(user_id))
    except ValueError:
        raise authentication_error("Invalid user ID format")


def get_current_user(
    user_id: Optional[str] = Header(None, alias="X-User-ID", description="Authenticated host user id"),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the authenticated host.

    The X-User-ID header is set by the authenticating gateway in front of
    the API.

    Raises:
        HTTPException: 401 if the header is missing or names no user
    """
    if not user_id:
        raise authentication_error("User ID required for authorization")
    user = _load_user(db, user_id)
    if not user:
        raise authentication_error("Unknown user")
    return user


def get_optional_user(
    user_id: Optional[str] = Header(None, alias="X-User-ID"),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like ``get_current_user`` but anonymous callers get None."""
    return _load_user(db, user_id)


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise forbidden_error("Unauthorized")
    return user
