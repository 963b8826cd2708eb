"""Schemas for session recordings."""
from pydantic import BaseModel, Field
from typing import Optional

from meetrelay.utils.serialization import serialize_datetime


class RecordingUploadRequest(BaseModel):
    sessionId: str
    fileBase64: str = Field(..., min_length=1)
    durationSeconds: Optional[int] = Field(None, ge=0)
    mimeType: str = "video/webm"


class RecordingResponse(BaseModel):
    id: int
    sessionId: str
    url: str
    fileSize: Optional[int] = None
    durationSeconds: Optional[int] = None
    mimeType: Optional[str] = None
    clientName: Optional[str] = None
    createdAt: Optional[str] = None

    @classmethod
    def from_orm(cls, obj) -> "RecordingResponse":
        """Convert SQLAlchemy model to response model."""
        return cls(
            id=obj.id,
            sessionId=obj.session_string_id,
            url=obj.url,
            fileSize=obj.file_size,
            durationSeconds=obj.duration_seconds,
            mimeType=obj.mime_type,
            clientName=obj.client_name,
            createdAt=serialize_datetime(obj.created_at),
        )
