"""WebRTC signaling exchange.

The relay is a mailbox on the session row. Two flows exist, distinguished by
which side produces the offer:

* browser flow: host ``send_offer`` -> client ``join`` / ``send_answer``,
  both sides trickle candidates with ``send_ice_candidate`` and poll
  ``get_signaling_data``;
* agent flow: client ``send_offer_from_client`` -> host ``get_offer`` /
  ``send_answer_from_host`` -> client ``get_answer``.

Nothing is pushed; each party polls until the field it waits for is set or
the session reaches a terminal status.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from meetrelay.config import settings
from meetrelay.constants import ActivityType, NotificationKind, SessionStatus, SignalingRole
from meetrelay.models.session import Session as SessionModel
from meetrelay.services.sessions import SessionManager
from meetrelay.utils.exceptions import (
    InvalidPasswordError,
    SessionEndedError,
    SessionExpiredError,
    ValidationError,
)
from meetrelay.utils.hashing import verify_password
from meetrelay.utils.logger import logger
from meetrelay.utils.serialization import dump_json, load_json

_ICE_FIELDS = {
    SignalingRole.HOST: "host_ice_candidates",
    SignalingRole.CLIENT: "client_ice_candidates",
}


class SignalingService:
    """Password- and ownership-gated access to a session's signaling payloads."""

    def __init__(self, db: Session, manager: SessionManager):
        self.db = db
        self.manager = manager

    # ------------------------------------------------------------------
    # Authorization helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_password(session: SessionModel, password: Optional[str]) -> None:
        if not password or not verify_password(password, session.password_hash):
            raise InvalidPasswordError()

    def _authorize(
        self,
        session: SessionModel,
        role: str,
        password: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> None:
        """Clients prove the session password, hosts prove ownership."""
        if role == SignalingRole.CLIENT:
            self._require_password(session, password)
        elif role == SignalingRole.HOST:
            self.manager.require_owner(session, user_id)
        else:
            raise ValidationError(f"Unknown role: {role}")

    def _authorize_agent(self, session: SessionModel, password: Optional[str]) -> None:
        """
        Gate for agent-flow client calls.

        These calls historically carry only the session id. A supplied
        password is always checked; it is mandatory only when
        ``agent_flow_requires_password`` is enabled.
        """
        if password is not None or settings.agent_flow_requires_password:
            self._require_password(session, password)

    def _append_candidates(self, session: SessionModel, role: str, candidates: List[Any]) -> int:
        """Append to one side's candidate list. The row must be locked by the caller."""
        field = _ICE_FIELDS[role]
        existing = load_json(getattr(session, field), default=[])
        existing.extend(candidates)
        setattr(session, field, dump_json(existing))
        return len(existing)

    # ------------------------------------------------------------------
    # Browser flow (host offers)
    # ------------------------------------------------------------------

    async def join(
        self,
        session_id: str,
        password: str,
        client_name: Optional[str] = None,
        client_ip: Optional[str] = None,
    ) -> SessionModel:
        """
        Admit a client that knows the session password.

        Joining again with the right password is accepted. The start
        notification goes out for the first successful join only.

        Returns:
            The session; ``host_offer`` may still be None, in which case the
            client polls ``get_signaling_data``.
        """
        session = self.manager.get(session_id)

        if self.manager.is_expired(session):
            self.manager.expire_if_due(session)
            raise SessionExpiredError()
        if session.status == SessionStatus.DISCONNECTED:
            raise SessionEndedError()
        self._require_password(session, password)

        if client_name is not None:
            session.client_name = client_name
        if client_ip is not None:
            session.client_ip = client_ip
        self.manager.update_status(session, SessionStatus.CONNECTING, commit=False)
        self.manager.add_log_entry(
            session,
            ActivityType.CLIENT_JOINED,
            {"clientName": client_name, "clientIp": client_ip},
        )
        self.db.commit()
        logger.info(f"Client joined session {session_id}")

        await self.manager.notify_once(
            session,
            NotificationKind.START,
            "New Remote Session Started",
            f'Client "{client_name or "Unknown"}" has joined session {session_id}. IP: {client_ip or "unknown"}',
        )
        return session

    def send_offer(self, session_id: str, user_id: Optional[int], offer: str) -> None:
        """Store the host's offer. Does not change the session status."""
        session = self.manager.get_owned(session_id, user_id)
        self.manager.ensure_writable(session)

        session.host_offer = offer
        self.db.commit()
        logger.info(f"Host offer stored for session {session_id}")

    def send_answer(self, session_id: str, password: str, answer: str) -> None:
        """Store the client's answer and mark the session connected."""
        session = self.manager.get(session_id)
        self._require_password(session, password)
        self.manager.ensure_writable(session)
        if session.host_offer is None:
            raise ValidationError("No host offer to answer yet")

        session.client_answer = answer
        self.manager.update_status(session, SessionStatus.CONNECTED, commit=False)
        self.manager.add_log_entry(session, ActivityType.HOST_CONNECTED, None)
        self.db.commit()
        logger.info(f"Client answer stored for session {session_id}")

    def send_ice_candidate(
        self,
        session_id: str,
        from_role: str,
        candidate: str,
        password: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> int:
        """
        Append one candidate to the sender's list.

        The session row is locked for the read-modify-write so concurrent
        candidates from the same side are not lost.

        Returns:
            Number of candidates now stored for that side
        """
        session = self.manager.get(session_id, for_update=True)
        self._authorize(session, from_role, password=password, user_id=user_id)
        self.manager.ensure_writable(session)

        count = self._append_candidates(session, from_role, [candidate])
        self.db.commit()
        logger.debug(f"Stored {from_role} ICE candidate #{count} for session {session_id}")
        return count

    def get_signaling_data(
        self,
        session_id: str,
        role: str,
        password: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Role-masked polling view.

        Clients only ever see the host's offer and candidates; hosts only
        ever see the client's answer and candidates. The reported status
        reflects lazy expiry.
        """
        session = self.manager.get(session_id)
        self._authorize(session, role, password=password, user_id=user_id)
        self.manager.expire_if_due(session)

        is_client = role == SignalingRole.CLIENT
        return {
            "status": session.status,
            "hostOffer": session.host_offer if is_client else None,
            "clientAnswer": session.client_answer if not is_client else None,
            "hostIceCandidates": load_json(session.host_ice_candidates) if is_client else None,
            "clientIceCandidates": load_json(session.client_ice_candidates) if not is_client else None,
            "clientName": session.client_name,
            "autoRecord": session.auto_record,
        }

    # ------------------------------------------------------------------
    # Agent flow (client offers)
    # ------------------------------------------------------------------

    def send_offer_from_client(
        self,
        session_id: str,
        offer: Dict[str, Any],
        ice_candidates: Optional[List[Dict[str, Any]]] = None,
        password: Optional[str] = None,
    ) -> None:
        """Store the agent's offer, replacing any earlier candidates; the session becomes ``connecting``."""
        session = self.manager.get(session_id, for_update=True)
        self._authorize_agent(session, password)
        self.manager.ensure_writable(session)

        # A new offer starts a new round; candidates from an earlier offer are dropped
        session.client_offer = dump_json(offer)
        session.client_ice_candidates = dump_json(ice_candidates) if ice_candidates else None
        self.manager.update_status(session, SessionStatus.CONNECTING, commit=False)
        self.db.commit()
        logger.info(f"Client offer stored for session {session_id}")

    def get_offer(self, session_id: str, user_id: Optional[int]) -> Dict[str, Any]:
        session = self.manager.get_owned(session_id, user_id)
        if not session.client_offer:
            return {"offer": None, "iceCandidates": None, "clientName": session.client_name}
        return {
            "offer": load_json(session.client_offer),
            "iceCandidates": load_json(session.client_ice_candidates, default=[]),
            "clientName": session.client_name,
        }

    def send_answer_from_host(
        self,
        session_id: str,
        user_id: Optional[int],
        answer: Dict[str, Any],
        ice_candidates: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        """Store the host's answer and candidates; the session becomes ``connected``."""
        session = self.manager.get_owned(session_id, user_id, for_update=True)
        self.manager.ensure_writable(session)
        if not session.client_offer:
            raise ValidationError("No client offer to answer yet")

        session.host_answer = dump_json(answer)
        session.host_ice_candidates = dump_json(ice_candidates) if ice_candidates else None
        self.manager.update_status(session, SessionStatus.CONNECTED, commit=False)
        self.manager.add_log_entry(session, ActivityType.HOST_CONNECTED, {"flow": "agent"})
        self.db.commit()
        logger.info(f"Host answer stored for session {session_id}")

    def get_answer(self, session_id: str, password: Optional[str] = None) -> Dict[str, Any]:
        session = self.manager.get(session_id)
        self._authorize_agent(session, password)
        if not session.host_answer:
            return {"answer": None, "iceCandidates": None}
        return {
            "answer": load_json(session.host_answer),
            "iceCandidates": load_json(session.host_ice_candidates, default=[]),
        }

    # ------------------------------------------------------------------
    # Termination and status
    # ------------------------------------------------------------------

    async def client_disconnect(self, session_id: str) -> None:
        session = self.manager.get(session_id)
        await self.manager.terminate(
            session,
            ActivityType.CLIENT_DISCONNECTED,
            None,
            notification=f"Client disconnected from session {session_id}.",
        )

    async def update_status(self, session_id: str, status: str, password: Optional[str] = None) -> None:
        """Public status report from either peer: ``connected`` or ``disconnected``."""
        session = self.manager.get(session_id)
        if password is not None:
            self._require_password(session, password)

        if status == SessionStatus.DISCONNECTED:
            await self.manager.terminate(
                session,
                ActivityType.DISCONNECTED,
                None,
                notification=f"Session {session_id} has been disconnected.",
            )
            return

        if status != SessionStatus.CONNECTED:
            raise ValidationError(f"Status cannot be reported as {status}")
        self.manager.ensure_writable(session)
        self.manager.update_status(session, SessionStatus.CONNECTED)

    def log_activity(
        self,
        session_id: str,
        activity_type: str,
        from_role: str,
        details: Optional[Dict[str, Any]] = None,
        password: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> None:
        """Record an in-session event (remote control, clipboard sync, reconnect)."""
        if activity_type not in ActivityType.IN_SESSION:
            raise ValidationError(f"Activity cannot be reported: {activity_type}")

        session = self.manager.get(session_id)
        self._authorize(session, from_role, password=password, user_id=user_id)
        self.manager.ensure_writable(session)

        payload = dict(details or {})
        payload["from"] = from_role
        self.manager.log_activity(session, activity_type, payload)

