"""Lifecycle notification dispatch."""
from meetrelay.utils.notification_queue import queue_notification
from meetrelay.utils.logger import logger


class NotificationService:
    """Hands session started/ended notifications to the background worker."""

    async def notify(self, title: str, content: str) -> bool:
        queued = await queue_notification(title, content)
        if queued:
            logger.info(f"Queued notification: {title}")
        return queued
