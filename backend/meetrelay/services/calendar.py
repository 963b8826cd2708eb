"""Calendar integration bridge.

Server-to-server facade used by the external scheduling system. Callers
authenticate with a key derived from the server secret, not with a user
session. The bridge never creates users: the host must have logged in
locally at least once.
"""
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from meetrelay.constants import MAX_CALENDAR_SESSION_MINUTES
from meetrelay.models.user import User
from meetrelay.services.sessions import SessionManager
from meetrelay.utils.exceptions import HostNotFoundError, InvalidKeyError
from meetrelay.utils.hashing import verify_calendar_api_key
from meetrelay.utils.logger import logger
from meetrelay.utils.serialization import serialize_datetime
from meetrelay.utils.url import build_host_url, build_join_url


class CalendarBridge:
    def __init__(self, db: Session, manager: SessionManager):
        self.db = db
        self.manager = manager

    @staticmethod
    def authenticate(api_key: Optional[str]) -> None:
        if not verify_calendar_api_key(api_key):
            logger.warning("Rejected calendar request with invalid API key")
            raise InvalidKeyError()

    def create_meeting(
        self,
        api_key: Optional[str],
        host_email: str,
        expires_in_minutes: int,
        calendar_event_id: Optional[str] = None,
        calendar_source: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a session for a calendar event.

        Returns:
            Session id, password, one-click join URL (password embedded as
            ``?p=``), host viewer URL and expiry
        """
        self.authenticate(api_key)

        host = (
            self.db.query(User)
            .filter(func.lower(User.email) == host_email.strip().lower())
            .first()
        )
        if not host:
            raise HostNotFoundError(
                "Host user not found. They must have logged in at least once."
            )

        session, password = self.manager.create(
            host.id,
            expires_in_minutes,
            auto_record=False,
            calendar_event_id=calendar_event_id,
            calendar_source=calendar_source,
            max_minutes=MAX_CALENDAR_SESSION_MINUTES,
        )
        logger.info(
            f"Calendar meeting {session.session_id} created for {host.email} "
            f"(event={calendar_event_id}, source={calendar_source})"
        )

        return {
            "sessionId": session.session_id,
            "password": password,
            "joinUrl": build_join_url(session.session_id, password),
            "hostUrl": build_host_url(session.session_id),
            "expiresAt": session.expires_at,
        }

    def get_meeting_status(self, api_key: Optional[str], session_id: str) -> Dict[str, Any]:
        """Status projection for a calendar-created session; no signaling payloads."""
        self.authenticate(api_key)

        session = self.manager.get(session_id)
        self.manager.expire_if_due(session)
        return {
            "sessionId": session.session_id,
            "status": session.status,
            "clientName": session.client_name,
            "createdAt": serialize_datetime(session.created_at),
            "connectedAt": serialize_datetime(session.connected_at),
            "endedAt": serialize_datetime(session.ended_at),
            "expiresAt": serialize_datetime(session.expires_at),
        }
