"""Session recording endpoints."""
from typing import List
from fastapi import APIRouter, Depends, Query

from meetrelay.api.deps import get_recording_service
from meetrelay.auth.user import get_current_user
from meetrelay.models.user import User
from meetrelay.schemas.recording import RecordingResponse, RecordingUploadRequest
from meetrelay.schemas.session import SuccessResponse
from meetrelay.services.recordings import RecordingService
from meetrelay.utils.url import decode_session_id

router = APIRouter(prefix="/api/recordings", tags=["recordings"])


@router.post("", response_model=RecordingResponse)
async def upload_recording(
    request: RecordingUploadRequest,
    user: User = Depends(get_current_user),
    service: RecordingService = Depends(get_recording_service),
) -> RecordingResponse:
    """
    Upload a recording of a session the caller hosts.

    The media is sent base64 encoded and stored in blob storage; only
    metadata lives in the database.
    """
    recording = await service.upload(
        request.sessionId,
        user.id,
        request.fileBase64,
        mime_type=request.mimeType,
        duration_seconds=request.durationSeconds,
    )
    return RecordingResponse.from_orm(recording)


@router.get("", response_model=List[RecordingResponse])
async def list_recordings(
    limit: int = Query(50, ge=1, le=100),
    user: User = Depends(get_current_user),
    service: RecordingService = Depends(get_recording_service),
) -> List[RecordingResponse]:
    return [RecordingResponse.from_orm(r) for r in service.list_for_user(user.id, limit=limit)]


@router.get("/session/{session_id}", response_model=List[RecordingResponse])
async def list_session_recordings(
    session_id: str,
    user: User = Depends(get_current_user),
    service: RecordingService = Depends(get_recording_service),
) -> List[RecordingResponse]:
    recordings = service.list_for_session(decode_session_id(session_id), user.id)
    return [RecordingResponse.from_orm(r) for r in recordings]


@router.delete("/{recording_id}", response_model=SuccessResponse)
async def delete_recording(
    recording_id: int,
    user: User = Depends(get_current_user),
    service: RecordingService = Depends(get_recording_service),
) -> SuccessResponse:
    """Delete a recording. Only the user who recorded it may delete it."""
    await service.delete(recording_id, user.id)
    return SuccessResponse()
