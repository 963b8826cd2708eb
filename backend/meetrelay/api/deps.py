"""FastAPI dependencies wiring services to the request's database session."""
from typing import Optional
from fastapi import Depends
from sqlalchemy.orm import Session

from meetrelay.database import get_db
from meetrelay.services.calendar import CalendarBridge
from meetrelay.services.notifier import NotificationService
from meetrelay.services.recordings import RecordingService
from meetrelay.services.sessions import SessionManager
from meetrelay.services.signaling import SignalingService
from meetrelay.services.storage import StorageService, get_storage_service
from meetrelay.utils.logger import logger


def get_notifier() -> NotificationService:
    return NotificationService()


def get_session_manager(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
) -> SessionManager:
    return SessionManager(db, notifier)


def get_signaling_service(
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
) -> SignalingService:
    return SignalingService(db, manager)


def get_calendar_bridge(
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
) -> CalendarBridge:
    return CalendarBridge(db, manager)


def get_storage() -> Optional[StorageService]:
    try:
        return get_storage_service()
    except ValueError as e:
        logger.debug(f"Recording storage unavailable: {e}")
        return None


def get_recording_service(
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
    storage: Optional[StorageService] = Depends(get_storage),
) -> RecordingService:
    return RecordingService(db, manager, storage)
