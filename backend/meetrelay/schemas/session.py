"""Schemas for session management."""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime

from meetrelay.config import settings
from meetrelay.constants import MIN_SESSION_MINUTES, MAX_SESSION_MINUTES
from meetrelay.utils.serialization import serialize_datetime, load_json


class SessionCreateRequest(BaseModel):
    """Request schema for POST /api/sessions."""
    expiresInMinutes: int = Field(
        default_factory=lambda: settings.default_session_minutes,
        ge=MIN_SESSION_MINUTES,
        le=MAX_SESSION_MINUTES,
        description="Minutes until the session can no longer be joined",
    )
    autoRecord: bool = Field(False, description="Start recording when the client joins")


class SessionCreateResponse(BaseModel):
    """Response schema for POST /api/sessions. The password is only ever returned here."""
    sessionId: str
    password: str
    expiresAt: datetime
    autoRecord: bool


class SessionListItem(BaseModel):
    """Session list item response."""
    sessionId: str
    status: str
    clientName: Optional[str] = None
    autoRecord: bool
    calendarEventId: Optional[str] = None
    createdAt: Optional[str] = None
    connectedAt: Optional[str] = None
    endedAt: Optional[str] = None
    expiresAt: Optional[str] = None

    @classmethod
    def from_orm(cls, obj) -> "SessionListItem":
        """Convert SQLAlchemy model to response model."""
        return cls(
            sessionId=obj.session_id,
            status=obj.status,
            clientName=obj.client_name,
            autoRecord=obj.auto_record,
            calendarEventId=obj.calendar_event_id,
            createdAt=serialize_datetime(obj.created_at),
            connectedAt=serialize_datetime(obj.connected_at),
            endedAt=serialize_datetime(obj.ended_at),
            expiresAt=serialize_datetime(obj.expires_at),
        )


class SessionLogItem(BaseModel):
    """One audit log row."""
    id: int
    activityType: str
    details: Optional[Dict[str, Any]] = None
    createdAt: Optional[str] = None

    @classmethod
    def from_orm(cls, obj) -> "SessionLogItem":
        return cls(
            id=obj.id,
            activityType=obj.activity_type,
            details=load_json(obj.details),
            createdAt=serialize_datetime(obj.created_at),
        )


class SuccessResponse(BaseModel):
    success: bool = True
