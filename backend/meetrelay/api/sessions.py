"""Session management endpoints for support hosts."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from meetrelay.api.deps import get_session_manager
from meetrelay.auth.user import get_current_user
from meetrelay.database import get_db
from meetrelay.models.user import User
from meetrelay.schemas.session import (
    SessionCreateRequest,
    SessionCreateResponse,
    SessionListItem,
    SessionLogItem,
    SuccessResponse,
)
from meetrelay.services.sessions import SessionManager
from meetrelay.utils.exceptions import AppException, handle_database_error
from meetrelay.utils.logger import logger
from meetrelay.utils.serialization import serialize_model_to_dict
from meetrelay.utils.url import decode_session_id

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

# Never leaves the server
_HIDDEN_FIELDS = ["password_hash"]


@router.post("", response_model=SessionCreateResponse)
async def create_session(
    request: SessionCreateRequest,
    user: User = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> SessionCreateResponse:
    """
    Create a new remote support session.

    The plaintext password is returned only in this response.
    """
    session, password = manager.create(user.id, request.expiresInMinutes, request.autoRecord)
    return SessionCreateResponse(
        sessionId=session.session_id,
        password=password,
        expiresAt=session.expires_at,
        autoRecord=session.auto_record,
    )


@router.get("", response_model=List[SessionListItem])
async def list_sessions(
    limit: int = Query(50, ge=1, le=100),
    activeOnly: bool = Query(False),
    user: User = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> List[SessionListItem]:
    """List the caller's sessions, newest first."""
    try:
        sessions = manager.list_for_host(user.id, limit=limit, active_only=activeOnly)
        return [SessionListItem.from_orm(s) for s in sessions]
    except Exception as e:
        logger.error(f"Failed to list sessions for user {user.id}: {e}", exc_info=True)
        raise handle_database_error(e, "list_sessions")


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    user: User = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> dict:
    """Full session row for its host."""
    session = manager.get_owned(decode_session_id(session_id), user.id)
    manager.expire_if_due(session)
    return serialize_model_to_dict(session, exclude=_HIDDEN_FIELDS)


@router.post("/{session_id}/end", response_model=SuccessResponse)
async def end_session(
    session_id: str,
    user: User = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    """End a session. Repeated calls succeed without sending a second notification."""
    try:
        await manager.end(decode_session_id(session_id), user.id)
        return SuccessResponse()
    except (AppException, HTTPException):
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to end session {session_id}: {e}", exc_info=True)
        raise handle_database_error(e, "end_session")


@router.get("/{session_id}/logs", response_model=List[SessionLogItem])
async def get_session_logs(
    session_id: str,
    user: User = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> List[SessionLogItem]:
    """Audit trail of a session, newest first."""
    session = manager.get_owned(decode_session_id(session_id), user.id)
    return [SessionLogItem.from_orm(entry) for entry in manager.get_logs(session)]
