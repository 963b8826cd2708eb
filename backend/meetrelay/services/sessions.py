"""Session lifecycle management.

Owns every status transition of a remote support session:

    waiting -> connecting -> connected -> disconnected
    any non-terminal state -> expired (once ``expires_at`` has passed)

Expiry is checked lazily whenever a session is touched; the worker sweep in
``meetrelay.workers.tasks`` only keeps stored statuses fresh for listings.
Start/end notifications are sent at most once per session by claiming the
corresponding flag with a conditional UPDATE before dispatching.
"""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from meetrelay.constants import (
    ActivityType,
    NotificationKind,
    SessionStatus,
    MIN_SESSION_MINUTES,
    MAX_SESSION_MINUTES,
)
from meetrelay.models.session import Session as SessionModel
from meetrelay.models.session_log import SessionLog
from meetrelay.utils import timeutils
from meetrelay.utils.db import get_by_field
from meetrelay.utils.exceptions import (
    CreateFailedError,
    SessionEndedError,
    SessionExpiredError,
    SessionNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from meetrelay.utils.hashing import generate_session_id, generate_session_password, hash_password
from meetrelay.utils.logger import logger
from meetrelay.utils.serialization import dump_json


class SessionManager:
    """Creates sessions and applies lifecycle rules against the session store."""

    def __init__(self, db: Session, notifier=None):
        self.db = db
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Creation and lookup
    # ------------------------------------------------------------------

    def create(
        self,
        host_user_id: int,
        expires_in_minutes: int,
        auto_record: bool = False,
        calendar_event_id: Optional[str] = None,
        calendar_source: Optional[str] = None,
        max_minutes: int = MAX_SESSION_MINUTES,
    ) -> Tuple[SessionModel, str]:
        """
        Create a waiting session owned by ``host_user_id``.

        Args:
            host_user_id: Owning user
            expires_in_minutes: Lifetime of the session
            auto_record: Recording policy flag for the host UI
            calendar_event_id: Calendar event the session was created for
            calendar_source: Calendar system identifier
            max_minutes: Upper bound for ``expires_in_minutes``

        Returns:
            The stored session and the plaintext password. The password is
            not stored and cannot be recovered later.

        Raises:
            ValidationError: If the lifetime is out of bounds
            CreateFailedError: If the insert fails
        """
        if not MIN_SESSION_MINUTES <= expires_in_minutes <= max_minutes:
            raise ValidationError(
                f"expiresInMinutes must be between {MIN_SESSION_MINUTES} and {max_minutes}"
            )

        password = generate_session_password()
        session = SessionModel(
            session_id=generate_session_id(),
            password_hash=hash_password(password),
            host_user_id=host_user_id,
            status=SessionStatus.WAITING,
            auto_record=auto_record,
            calendar_event_id=calendar_event_id or None,
            calendar_source=calendar_source or None,
            expires_at=timeutils.minutes_from_now(expires_in_minutes),
        )

        details: Dict[str, Any] = {"hostUserId": host_user_id}
        if calendar_event_id or calendar_source:
            details["calendarEventId"] = calendar_event_id
            details["calendarSource"] = calendar_source

        try:
            self.db.add(session)
            self.db.flush()
            self.add_log_entry(session, ActivityType.SESSION_CREATED, details)
            self.db.commit()
        except SQLAlchemyError as e:
            # A session id collision lands here too; never reuse the value
            self.db.rollback()
            logger.error(f"Failed to create session for host {host_user_id}: {e}", exc_info=True)
            raise CreateFailedError() from e

        self.db.refresh(session)
        logger.info(f"Created session {session.session_id} for host {host_user_id}")
        return session, password

    def get(self, session_id: str, for_update: bool = False) -> SessionModel:
        """Read a session by its external id. Callers apply their own authorization."""
        session = get_by_field(self.db, SessionModel, "session_id", session_id, for_update=for_update)
        if not session:
            raise SessionNotFoundError()
        return session

    def get_owned(self, session_id: str, user_id: Optional[int], for_update: bool = False) -> SessionModel:
        """Read a session and require ``user_id`` to be its host."""
        session = self.get(session_id, for_update=for_update)
        self.require_owner(session, user_id)
        return session

    @staticmethod
    def require_owner(session: SessionModel, user_id: Optional[int]) -> None:
        if user_id is None or session.host_user_id != user_id:
            raise UnauthorizedError()

    def list_for_host(self, host_user_id: int, limit: int = 50, active_only: bool = False) -> List[SessionModel]:
        query = self.db.query(SessionModel).filter(SessionModel.host_user_id == host_user_id)
        if active_only:
            query = query.filter(SessionModel.status == SessionStatus.WAITING)
        return query.order_by(SessionModel.created_at.desc(), SessionModel.id.desc()).limit(limit).all()

    def get_logs(self, session: SessionModel) -> List[SessionLog]:
        return (
            self.db.query(SessionLog)
            .filter(SessionLog.session_id == session.id)
            .order_by(SessionLog.created_at.desc(), SessionLog.id.desc())
            .all()
        )

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    @staticmethod
    def is_past_expiry(session: SessionModel) -> bool:
        return timeutils.as_utc(session.expires_at) <= timeutils.utc_now()

    def is_expired(self, session: SessionModel) -> bool:
        """True if the session can no longer be joined because of its lifetime."""
        return session.status == SessionStatus.EXPIRED or self.is_past_expiry(session)

    def expire_if_due(self, session: SessionModel) -> bool:
        """
        Lazily move a non-terminal session past ``expires_at`` to ``expired``.

        Returns:
            True if the session is (now) in the expired state
        """
        if session.status == SessionStatus.EXPIRED:
            return True
        if session.status in SessionStatus.TERMINAL or not self.is_past_expiry(session):
            return False

        self._set_status(session, SessionStatus.EXPIRED)
        self.add_log_entry(session, ActivityType.SESSION_EXPIRED, {"expiresAt": session.expires_at.isoformat()})
        self.db.commit()
        logger.info(f"Session {session.session_id} expired")
        return True

    def ensure_writable(self, session: SessionModel) -> None:
        """
        Reject state changes on sessions that are past their lifetime or ended.

        Raises:
            SessionExpiredError: If the session is expired
            SessionEndedError: If the session was disconnected
        """
        if self.expire_if_due(session) or self.is_past_expiry(session):
            raise SessionExpiredError()
        if session.status == SessionStatus.DISCONNECTED:
            raise SessionEndedError()

    def expire_overdue(self) -> int:
        """Mark every non-terminal session past its lifetime as expired."""
        now = timeutils.utc_now()
        overdue = (
            self.db.query(SessionModel)
            .filter(
                SessionModel.status.in_(
                    [SessionStatus.WAITING, SessionStatus.CONNECTING, SessionStatus.CONNECTED]
                ),
                SessionModel.expires_at < now,
            )
            .all()
        )
        for session in overdue:
            self._set_status(session, SessionStatus.EXPIRED)
            self.add_log_entry(session, ActivityType.SESSION_EXPIRED, {"sweep": True})
        self.db.commit()
        return len(overdue)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def update_status(self, session: SessionModel, status: str, commit: bool = True) -> bool:
        """
        Move a session to ``status``.

        Setting the current status again is a no-op. Requests that would move
        a session backwards in its lifecycle keep the current status.

        Returns:
            True if the stored status changed

        Raises:
            ValidationError: For an unknown status
            SessionEndedError / SessionExpiredError: If the session is terminal
        """
        if status not in SessionStatus.ALL:
            raise ValidationError(f"Unknown status: {status}")

        current = session.status
        if status == current:
            return False
        if current == SessionStatus.EXPIRED:
            raise SessionExpiredError()
        if current == SessionStatus.DISCONNECTED:
            raise SessionEndedError()
        if SessionStatus.RANK[status] < SessionStatus.RANK[current]:
            logger.debug(f"Ignoring {current} -> {status} for session {session.session_id}")
            return False

        self._set_status(session, status)
        if commit:
            self.db.commit()
        logger.info(f"Session {session.session_id}: {current} -> {status}")
        return True

    async def end(self, session_id: str, requesting_user_id: Optional[int]) -> SessionModel:
        """End a session on behalf of its host."""
        session = self.get_owned(session_id, requesting_user_id)
        await self.terminate(
            session,
            ActivityType.SESSION_ENDED,
            {"endedBy": "host"},
            notification=f"Session {session_id} has been ended by the host.",
        )
        return session

    async def terminate(
        self,
        session: SessionModel,
        activity_type: str,
        details: Optional[Dict[str, Any]],
        notification: str,
    ) -> bool:
        """
        Disconnect a session, log ``activity_type`` and send the end notification once.

        Already-disconnected sessions are accepted so termination can be
        retried; only the first call changes state.

        Returns:
            True if this call performed the transition
        """
        changed = False
        if session.status != SessionStatus.DISCONNECTED:
            if self.expire_if_due(session):
                raise SessionExpiredError()
            self._set_status(session, SessionStatus.DISCONNECTED)
            self.add_log_entry(session, activity_type, details)
            self.db.commit()
            changed = True
            logger.info(f"Session {session.session_id} disconnected ({activity_type})")

        await self.notify_once(session, NotificationKind.END, "Remote Session Ended", notification)
        return changed

    # ------------------------------------------------------------------
    # Notifications and audit log
    # ------------------------------------------------------------------

    def mark_notification_sent(self, session_id: str, kind: str) -> bool:
        """
        Set the start/end notification flag.

        The flag is claimed with a conditional UPDATE, so of several
        concurrent callers exactly one sees True. Repeated calls are no-ops.

        Returns:
            True if this call flipped the flag
        """
        if kind == NotificationKind.START:
            field = SessionModel.start_notification_sent
        elif kind == NotificationKind.END:
            field = SessionModel.end_notification_sent
        else:
            raise ValidationError(f"Unknown notification kind: {kind}")

        claimed = (
            self.db.query(SessionModel)
            .filter(SessionModel.session_id == session_id, field == False)  # noqa: E712
            .update({field: True}, synchronize_session=False)
        )
        self.db.commit()
        return claimed == 1

    async def notify_once(self, session: SessionModel, kind: str, title: str, content: str) -> bool:
        """Send a lifecycle notification unless one of this kind was already sent."""
        if not self.mark_notification_sent(session.session_id, kind):
            return False
        if self.notifier is None:
            logger.warning(f"No notifier configured; dropping '{title}' for {session.session_id}")
            return False
        await self.notifier.notify(title, content)
        return True

    def log_activity(self, session: SessionModel, activity_type: str, details: Optional[Dict[str, Any]] = None) -> SessionLog:
        entry = self.add_log_entry(session, activity_type, details)
        self.db.commit()
        return entry

    def add_log_entry(self, session: SessionModel, activity_type: str, details: Optional[Dict[str, Any]]) -> SessionLog:
        entry = SessionLog(
            session_id=session.id,
            activity_type=activity_type,
            details=dump_json(details) if details else None,
        )
        self.db.add(entry)
        return entry

    @staticmethod
    def _set_status(session: SessionModel, status: str) -> None:
        session.status = status
        if status == SessionStatus.CONNECTED:
            session.connected_at = timeutils.utc_now()
        elif status in SessionStatus.TERMINAL:
            session.ended_at = timeutils.utc_now()
