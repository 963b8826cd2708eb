"""Session recording metadata model."""
from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from meetrelay.database import Base


class Recording(Base):
    """Metadata for a recorded session; the media lives in blob storage."""
    __tablename__ = "recordings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False, index=True)
    session_string_id = Column(String(32), nullable=False, index=True)
    recorded_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    file_key = Column(Text, nullable=False)
    url = Column(Text, nullable=False)
    file_size = Column(BigInteger, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    mime_type = Column(String(64), default="video/webm")
    client_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    session = relationship("Session", back_populates="recordings")
