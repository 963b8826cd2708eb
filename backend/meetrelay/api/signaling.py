"""WebRTC signaling endpoints.

Client-facing calls are public and gated by the session password; host
calls require the authenticated owner. Both sides poll; nothing is pushed.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from meetrelay.api.deps import get_signaling_service
from meetrelay.auth.user import get_current_user, get_optional_user
from meetrelay.config import settings
from meetrelay.database import get_db
from meetrelay.models.user import User
from meetrelay.schemas.session import SuccessResponse
from meetrelay.schemas.signaling import (
    ActivityRequest,
    AnswerResponse,
    ClientOfferRequest,
    HostAnswerRequest,
    IceCandidateRequest,
    JoinRequest,
    JoinResponse,
    OfferResponse,
    Role,
    SendAnswerRequest,
    SendOfferRequest,
    SessionRef,
    SignalingDataResponse,
    StatusUpdateRequest,
)
from meetrelay.services.signaling import SignalingService
from meetrelay.utils.exceptions import AppException, handle_database_error
from meetrelay.utils.logger import logger

router = APIRouter(prefix="/api/signaling", tags=["signaling"])


def get_client_ip(request: Request) -> Optional[str]:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("/join", response_model=JoinResponse)
async def join(
    body: JoinRequest,
    request: Request,
    service: SignalingService = Depends(get_signaling_service),
    db: Session = Depends(get_db),
) -> JoinResponse:
    """Client joins with the session password and receives the host offer, if any."""
    try:
        session = await service.join(
            body.sessionId,
            body.password,
            client_name=body.clientName,
            client_ip=get_client_ip(request),
        )
        return JoinResponse(
            sessionId=session.session_id,
            hostOffer=session.host_offer,
            pollIntervalSeconds=settings.signaling_poll_interval_seconds,
        )
    except (AppException, HTTPException):
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to join session {body.sessionId}: {e}", exc_info=True)
        raise handle_database_error(e, "join")


@router.post("/offer", response_model=SuccessResponse)
async def send_offer(
    body: SendOfferRequest,
    user: User = Depends(get_current_user),
    service: SignalingService = Depends(get_signaling_service),
) -> SuccessResponse:
    """Host stores its offer (browser flow)."""
    service.send_offer(body.sessionId, user.id, body.offer)
    return SuccessResponse()


@router.post("/answer", response_model=SuccessResponse)
async def send_answer(
    body: SendAnswerRequest,
    service: SignalingService = Depends(get_signaling_service),
) -> SuccessResponse:
    """Client stores its answer; the session becomes connected."""
    service.send_answer(body.sessionId, body.password, body.answer)
    return SuccessResponse()


@router.post("/ice-candidate", response_model=SuccessResponse)
async def send_ice_candidate(
    body: IceCandidateRequest,
    user: Optional[User] = Depends(get_optional_user),
    service: SignalingService = Depends(get_signaling_service),
) -> SuccessResponse:
    """Append one ICE candidate for the sending side."""
    service.send_ice_candidate(
        body.sessionId,
        body.from_,
        body.candidate,
        password=body.password,
        user_id=user.id if user else None,
    )
    return SuccessResponse()


@router.get("/data", response_model=SignalingDataResponse)
async def get_signaling_data(
    sessionId: str = Query(...),
    role: Role = Query(...),
    password: Optional[str] = Query(None),
    user: Optional[User] = Depends(get_optional_user),
    service: SignalingService = Depends(get_signaling_service),
) -> SignalingDataResponse:
    """Polling endpoint; the response is masked by role."""
    data = service.get_signaling_data(
        sessionId, role, password=password, user_id=user.id if user else None
    )
    return SignalingDataResponse(**data)


@router.post("/client-offer", response_model=SuccessResponse)
async def send_offer_from_client(
    body: ClientOfferRequest,
    service: SignalingService = Depends(get_signaling_service),
) -> SuccessResponse:
    """Agent client stores its offer first (agent flow)."""
    candidates = [c.model_dump(exclude_none=True) for c in body.iceCandidates] if body.iceCandidates else None
    service.send_offer_from_client(
        body.sessionId,
        body.offer.model_dump(exclude_none=True),
        candidates,
        password=body.password,
    )
    return SuccessResponse()


@router.get("/client-offer", response_model=OfferResponse)
async def get_offer(
    sessionId: str = Query(...),
    user: User = Depends(get_current_user),
    service: SignalingService = Depends(get_signaling_service),
) -> OfferResponse:
    """Host polls for the agent's offer."""
    return OfferResponse(**service.get_offer(sessionId, user.id))


@router.post("/host-answer", response_model=SuccessResponse)
async def send_answer_from_host(
    body: HostAnswerRequest,
    user: User = Depends(get_current_user),
    service: SignalingService = Depends(get_signaling_service),
) -> SuccessResponse:
    """Host answers the agent's offer; the session becomes connected."""
    candidates = [c.model_dump(exclude_none=True) for c in body.iceCandidates] if body.iceCandidates else None
    service.send_answer_from_host(
        body.sessionId,
        user.id,
        body.answer.model_dump(exclude_none=True),
        candidates,
    )
    return SuccessResponse()


@router.get("/host-answer", response_model=AnswerResponse)
async def get_answer(
    sessionId: str = Query(...),
    password: Optional[str] = Query(None),
    service: SignalingService = Depends(get_signaling_service),
) -> AnswerResponse:
    """Agent client polls for the host's answer."""
    return AnswerResponse(**service.get_answer(sessionId, password=password))


@router.post("/client-disconnect", response_model=SuccessResponse)
async def client_disconnect(
    body: SessionRef,
    service: SignalingService = Depends(get_signaling_service),
) -> SuccessResponse:
    await service.client_disconnect(body.sessionId)
    return SuccessResponse()


@router.post("/status", response_model=SuccessResponse)
async def update_status(
    body: StatusUpdateRequest,
    service: SignalingService = Depends(get_signaling_service),
) -> SuccessResponse:
    """Either peer reports the connection as established or gone."""
    await service.update_status(body.sessionId, body.status, password=body.password)
    return SuccessResponse()


@router.post("/activity", response_model=SuccessResponse)
async def log_activity(
    body: ActivityRequest,
    user: Optional[User] = Depends(get_optional_user),
    service: SignalingService = Depends(get_signaling_service),
) -> SuccessResponse:
    """Record remote-control, clipboard and reconnect events in the audit log."""
    service.log_activity(
        body.sessionId,
        body.activityType,
        body.from_,
        details=body.details,
        password=body.password,
        user_id=user.id if user else None,
    )
    return SuccessResponse()
