"""Pydantic schemas for request/response validation."""
from meetrelay.schemas.session import SessionCreateRequest, SessionCreateResponse
from meetrelay.schemas.signaling import JoinRequest, JoinResponse, SignalingDataResponse
from meetrelay.schemas.calendar import CreateMeetingRequest, CreateMeetingResponse, MeetingStatusResponse

__all__ = [
    "SessionCreateRequest",
    "SessionCreateResponse",
    "JoinRequest",
    "JoinResponse",
    "SignalingDataResponse",
    "CreateMeetingRequest",
    "CreateMeetingResponse",
    "MeetingStatusResponse",
]
