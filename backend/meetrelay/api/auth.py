"""Authentication API endpoints."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from pydantic import BaseModel

from meetrelay.auth.user import get_current_user
from meetrelay.config import settings
from meetrelay.constants import UserRole
from meetrelay.database import get_db
from meetrelay.models import User
from meetrelay.utils import timeutils
from meetrelay.utils.exceptions import authentication_error
from meetrelay.utils.hashing import verify_admin_password
from meetrelay.utils.logger import logger
from meetrelay.utils.serialization import serialize_datetime

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    user: dict
    token: Optional[str] = None


def _user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "createdAt": serialize_datetime(user.created_at),
        "lastSignedIn": serialize_datetime(user.last_signed_in),
    }


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    """
    Administrative login against the configured admin account.

    The email is compared case-insensitively after trimming; the password
    is checked with bcrypt. On success the admin user row is created or
    refreshed so the calendar bridge can resolve it by email.

    Args:
        request: Login credentials
        db: Database session

    Returns:
        Login response with user data
    """
    try:
        email = request.email.strip().lower()
        admin_email = (settings.admin_email or "").strip().lower()

        if not admin_email or not settings.admin_password_hash or email != admin_email:
            raise authentication_error("Invalid credentials")
        if not verify_admin_password(request.password, settings.admin_password_hash):
            raise authentication_error("Invalid credentials")

        user = db.query(User).filter(func.lower(User.email) == admin_email).first()
        if not user:
            user = User(email=admin_email, name="Admin", role=UserRole.ADMIN)
            db.add(user)
            logger.info(f"Created admin user {admin_email}")
        user.role = UserRole.ADMIN
        user.last_signed_in = timeutils.utc_now()
        db.commit()
        db.refresh(user)

        return LoginResponse(user=_user_payload(user), token=None)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Login error for {request.email}: {e}", exc_info=True)
        raise authentication_error("Login failed")


@router.get("/me")
async def me(user: User = Depends(get_current_user)) -> dict:
    """Return the current user."""
    return _user_payload(user)
