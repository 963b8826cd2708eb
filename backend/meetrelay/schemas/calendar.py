"""Schemas for the calendar integration bridge."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from meetrelay.config import settings
from meetrelay.constants import MIN_SESSION_MINUTES, MAX_CALENDAR_SESSION_MINUTES


class CreateMeetingRequest(BaseModel):
    """Request schema for POST /api/calendar/meetings."""
    apiKey: Optional[str] = Field(None, description="Calendar key (or X-API-Key header)")
    hostEmail: EmailStr
    expiresInMinutes: int = Field(
        default_factory=lambda: settings.default_calendar_minutes,
        ge=MIN_SESSION_MINUTES,
        le=MAX_CALENDAR_SESSION_MINUTES,
    )
    calendarEventId: Optional[str] = Field(None, max_length=255)
    calendarSource: Optional[str] = Field(None, max_length=64)

    @field_validator("hostEmail", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value


class CreateMeetingResponse(BaseModel):
    success: bool = True
    sessionId: str
    password: str
    joinUrl: str
    hostUrl: str
    expiresAt: datetime


class MeetingStatusResponse(BaseModel):
    """Status projection; never includes signaling payloads."""
    sessionId: str
    status: str
    clientName: Optional[str] = None
    createdAt: Optional[str] = None
    connectedAt: Optional[str] = None
    endedAt: Optional[str] = None
    expiresAt: Optional[str] = None
