"""Schemas for the WebRTC signaling exchange.

Two payload shapes cross the boundary. The browser flow sends SDP and
candidates as opaque strings; the agent flow sends structured
``RTCSessionDescription`` / ``RTCIceCandidate`` JSON. Both are validated
here and stored as text; the relay never parses SDP.
"""
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

from meetrelay.config import settings


def _check_payload_size(value: str) -> str:
    if len(value.encode("utf-8")) > settings.max_payload_bytes:
        raise ValueError(f"payload exceeds {settings.max_payload_bytes} bytes")
    return value


SignalPayload = Annotated[str, StringConstraints(min_length=1), AfterValidator(_check_payload_size)]
Role = Literal["host", "client"]


class SessionDescription(BaseModel):
    """Structured SDP as produced by ``RTCPeerConnection.localDescription``."""
    model_config = ConfigDict(extra="allow")

    type: Literal["offer", "answer", "pranswer", "rollback"]
    sdp: Annotated[str, AfterValidator(_check_payload_size)] = ""


class IceCandidate(BaseModel):
    """Structured ICE candidate as produced by ``RTCIceCandidate.toJSON()``."""
    model_config = ConfigDict(extra="allow")

    candidate: Annotated[str, AfterValidator(_check_payload_size)]
    sdpMid: Optional[str] = None
    sdpMLineIndex: Optional[int] = None
    usernameFragment: Optional[str] = None


class SessionRef(BaseModel):
    sessionId: str


class JoinRequest(BaseModel):
    """Client join with the session password."""
    sessionId: str
    password: str
    clientName: Optional[str] = Field(None, max_length=255)


class JoinResponse(BaseModel):
    success: bool = True
    sessionId: str
    hostOffer: Optional[str] = None
    pollIntervalSeconds: int


class SendOfferRequest(BaseModel):
    """Host pushes its offer (browser flow)."""
    sessionId: str
    offer: SignalPayload


class SendAnswerRequest(BaseModel):
    """Client pushes its answer (browser flow)."""
    sessionId: str
    password: str
    answer: SignalPayload


class IceCandidateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sessionId: str
    candidate: SignalPayload
    from_: Role = Field(..., alias="from")
    password: Optional[str] = None


class SignalingDataResponse(BaseModel):
    """Role-masked polling view: clients see host fields, hosts see client fields."""
    status: str
    hostOffer: Optional[str] = None
    clientAnswer: Optional[str] = None
    hostIceCandidates: Optional[List[Any]] = None
    clientIceCandidates: Optional[List[Any]] = None
    clientName: Optional[str] = None
    autoRecord: bool = False


class ClientOfferRequest(BaseModel):
    """Agent client pushes its offer first (agent flow)."""
    sessionId: str
    offer: SessionDescription
    iceCandidates: Optional[List[IceCandidate]] = None
    password: Optional[str] = None


class HostAnswerRequest(BaseModel):
    """Host answers the agent's offer (agent flow)."""
    sessionId: str
    answer: SessionDescription
    iceCandidates: Optional[List[IceCandidate]] = None


class OfferResponse(BaseModel):
    offer: Optional[Dict[str, Any]] = None
    iceCandidates: Optional[List[Any]] = None
    clientName: Optional[str] = None


class AnswerResponse(BaseModel):
    answer: Optional[Dict[str, Any]] = None
    iceCandidates: Optional[List[Any]] = None


class StatusUpdateRequest(BaseModel):
    sessionId: str
    status: Literal["connected", "disconnected"]
    password: Optional[str] = None


class ActivityRequest(BaseModel):
    """In-session activity reported by either party."""
    model_config = ConfigDict(populate_by_name=True)

    sessionId: str
    activityType: Literal["control_started", "control_ended", "clipboard_sync", "reconnected"]
    from_: Role = Field(..., alias="from")
    password: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
