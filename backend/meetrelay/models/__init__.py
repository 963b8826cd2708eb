"""Models package."""
from meetrelay.models.user import User
from meetrelay.models.session import Session
from meetrelay.models.session_log import SessionLog
from meetrelay.models.recording import Recording

__all__ = ["User", "Session", "SessionLog", "Recording"]
