"""Session recording metadata and uploads."""
import base64
import binascii
import secrets
import time
from typing import List, Optional

from sqlalchemy.orm import Session

from meetrelay.models.recording import Recording
from meetrelay.services.sessions import SessionManager
from meetrelay.services.storage import StorageService
from meetrelay.utils.db import get_by_id
from meetrelay.utils.exceptions import AppException, NotFoundError, ValidationError
from meetrelay.utils.logger import logger


class UploadFailedError(AppException):
    code = "UploadFailed"
    status_code = 502
    default_message = "Failed to store recording"


class RecordingService:
    def __init__(self, db: Session, manager: SessionManager, storage: Optional[StorageService] = None):
        self.db = db
        self.manager = manager
        self.storage = storage

    async def upload(
        self,
        session_id: str,
        user_id: int,
        file_base64: str,
        mime_type: str = "video/webm",
        duration_seconds: Optional[int] = None,
    ) -> Recording:
        """
        Store a recording for a session owned by ``user_id``.

        Raises:
            SessionNotFoundError / UnauthorizedError: For unknown or foreign sessions
            ValidationError: If the body is not valid base64
            UploadFailedError: If blob storage rejects the upload
        """
        session = self.manager.get_owned(session_id, user_id)

        try:
            content = base64.b64decode(file_base64, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("fileBase64 is not valid base64")

        ext = "webm" if "webm" in mime_type else "mp4"
        file_key = f"recordings/{session_id}/{int(time.time() * 1000)}-{secrets.token_hex(8)}.{ext}"

        if self.storage is None:
            raise UploadFailedError("Recording storage is not configured")
        result = await self.storage.upload_bytes(content, file_key, mime_type)
        if not result.success:
            raise UploadFailedError(result.error)

        recording = Recording(
            session_id=session.id,
            session_string_id=session.session_id,
            recorded_by=user_id,
            file_key=file_key,
            url=result.url,
            file_size=len(content),
            duration_seconds=duration_seconds,
            mime_type=mime_type,
            client_name=session.client_name,
        )
        self.db.add(recording)
        self.db.commit()
        self.db.refresh(recording)
        logger.info(f"Stored recording {recording.id} for session {session_id} ({len(content)} bytes)")
        return recording

    def list_for_user(self, user_id: int, limit: int = 50) -> List[Recording]:
        return (
            self.db.query(Recording)
            .filter(Recording.recorded_by == user_id)
            .order_by(Recording.created_at.desc(), Recording.id.desc())
            .limit(limit)
            .all()
        )

    def list_for_session(self, session_id: str, user_id: int) -> List[Recording]:
        self.manager.get_owned(session_id, user_id)
        return (
            self.db.query(Recording)
            .filter(Recording.session_string_id == session_id)
            .order_by(Recording.created_at.desc(), Recording.id.desc())
            .all()
        )

    async def delete(self, recording_id: int, user_id: int) -> None:
        """Delete a recording; only the user who recorded it may do so."""
        recording = get_by_id(self.db, Recording, recording_id)
        if not recording or recording.recorded_by != user_id:
            raise NotFoundError("Recording not found or unauthorized")

        file_key = recording.file_key
        self.db.delete(recording)
        self.db.commit()
        logger.info(f"Deleted recording {recording_id}")

        if self.storage is not None and not await self.storage.delete_file(file_key):
            logger.warning(f"Recording {recording_id} removed but blob {file_key} was left behind")
