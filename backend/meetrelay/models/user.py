"""User model for support hosts."""
from sqlalchemy import Column, Integer, String, DateTime, func
from meetrelay.database import Base


class User(Base):
    """Support host account, created on first login."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    name = Column(String(255))
    role = Column(String(16), default="user", nullable=False)  # user|admin
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    last_signed_in = Column(DateTime(timezone=True), server_default=func.now())
