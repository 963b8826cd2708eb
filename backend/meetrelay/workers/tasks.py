"""ARQ background tasks for lifecycle notifications and expiry."""
from typing import Any, Dict

import httpx

from meetrelay.config import settings
from meetrelay.database import SessionLocal
from meetrelay.services.sessions import SessionManager
from meetrelay.utils.logger import logger


async def send_session_notification(ctx: Dict[str, Any], title: str, content: str) -> Dict[str, Any]:
    """
    Deliver a session started/ended notification.

    Args:
        ctx: ARQ context
        title: Notification title
        content: Notification body

    Returns:
        Dict with success status and details
    """
    if not settings.notification_webhook_url:
        logger.info(f"Notification (no webhook configured): {title} - {content}")
        return {"success": True, "delivered": False}

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                settings.notification_webhook_url,
                json={"title": title, "content": content},
            )
    except httpx.HTTPError as e:
        logger.error(f"Failed to deliver notification '{title}': {e}", exc_info=True)
        raise

    if response.status_code >= 400:
        logger.error(f"Notification webhook rejected '{title}': {response.status_code} - {response.text}")
        return {"success": False, "error": f"Webhook returned {response.status_code}"}

    logger.info(f"Delivered notification: {title}")
    return {"success": True, "delivered": True}


async def expire_overdue_sessions(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mark sessions past their lifetime as expired.

    Lazy checks on access already enforce expiry; this only keeps stored
    statuses current for listings.

    Returns:
        Dict with count of sessions expired
    """
    db = SessionLocal()

    try:
        expired = SessionManager(db).expire_overdue()
        if expired:
            logger.info(f"Expired {expired} overdue sessions")
        return {"success": True, "sessions_expired": expired}

    except Exception as e:
        db.rollback()
        logger.error(f"Expiry sweep failed: {e}", exc_info=True)
        return {"success": False, "error": str(e)}

    finally:
        db.close()
