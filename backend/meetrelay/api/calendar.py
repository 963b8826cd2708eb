"""Calendar integration endpoints.

Authenticated by the derived calendar key, sent as ``apiKey`` or in the
X-API-Key header. Invalid keys are rejected before any lookup.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from meetrelay.api.deps import get_calendar_bridge
from meetrelay.auth.api_key import get_calendar_api_key_header
from meetrelay.auth.user import require_admin
from meetrelay.models.user import User
from meetrelay.schemas.calendar import (
    CreateMeetingRequest,
    CreateMeetingResponse,
    MeetingStatusResponse,
)
from meetrelay.services.calendar import CalendarBridge
from meetrelay.utils.hashing import derive_calendar_api_key
from meetrelay.utils.logger import logger

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.post("/meetings", response_model=CreateMeetingResponse)
async def create_meeting(
    request: CreateMeetingRequest,
    header_key: Optional[str] = Depends(get_calendar_api_key_header),
    bridge: CalendarBridge = Depends(get_calendar_bridge),
) -> CreateMeetingResponse:
    """Create a remote support session for a calendar event."""
    result = bridge.create_meeting(
        request.apiKey or header_key,
        request.hostEmail,
        request.expiresInMinutes,
        calendar_event_id=request.calendarEventId,
        calendar_source=request.calendarSource,
    )
    return CreateMeetingResponse(**result)


@router.get("/meetings/{session_id}", response_model=MeetingStatusResponse)
async def get_meeting_status(
    session_id: str,
    apiKey: Optional[str] = Query(None),
    header_key: Optional[str] = Depends(get_calendar_api_key_header),
    bridge: CalendarBridge = Depends(get_calendar_bridge),
) -> MeetingStatusResponse:
    """Read-only status of a meeting; signaling payloads are never included."""
    return MeetingStatusResponse(**bridge.get_meeting_status(apiKey or header_key, session_id))


@router.get("/api-key")
async def get_api_key(admin: User = Depends(require_admin)) -> dict:
    """Expose the calendar key to administrators for configuring the scheduler."""
    logger.info(f"Calendar API key requested by admin {admin.id}")
    return {"apiKey": derive_calendar_api_key()}
