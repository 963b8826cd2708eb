"""Notification queue utilities."""
from arq import create_pool
from meetrelay.workers.redis_config import redis_settings
from meetrelay.utils.logger import logger


async def queue_notification(title: str, content: str) -> bool:
    """
    Queue a lifecycle notification for the worker to deliver.

    Args:
        title: Notification title
        content: Notification body

    Returns:
        True if job was queued successfully, False otherwise
    """
    try:
        redis = await create_pool(redis_settings)
        await redis.enqueue_job("send_session_notification", title, content)
        await redis.aclose()
        return True
    except Exception as e:
        logger.error(f"Failed to queue notification '{title}': {e}", exc_info=True)
        return False
