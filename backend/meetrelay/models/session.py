"""Remote support session model."""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from meetrelay.database import Base


class Session(Base):
    """A remote support session and its signaling mailbox."""
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(32), unique=True, nullable=False, index=True)  # Used in URLs
    password_hash = Column(String(128), nullable=False)
    status = Column(String(20), default="waiting", nullable=False, index=True)  # waiting|connecting|connected|disconnected|expired
    host_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Captured when the client joins
    client_name = Column(String(255), nullable=True)
    client_ip = Column(String(45), nullable=True)

    # Browser host flow: host offers, client answers
    host_offer = Column(Text, nullable=True)
    client_answer = Column(Text, nullable=True)
    # Agent flow: client offers, host answers (JSON text)
    client_offer = Column(Text, nullable=True)
    host_answer = Column(Text, nullable=True)
    # JSON arrays, appended to
    host_ice_candidates = Column(Text, nullable=True)
    client_ice_candidates = Column(Text, nullable=True)

    start_notification_sent = Column(Boolean, default=False, nullable=False)
    end_notification_sent = Column(Boolean, default=False, nullable=False)
    auto_record = Column(Boolean, default=False, nullable=False)

    # Calendar integration provenance
    calendar_event_id = Column(String(255), nullable=True)
    calendar_source = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    connected_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    host = relationship("User")
    logs = relationship("SessionLog", back_populates="session", order_by="SessionLog.id")
    recordings = relationship("Recording", back_populates="session")
