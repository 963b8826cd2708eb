"""ARQ worker configuration."""
from arq.cron import cron

from meetrelay.constants import EXPIRY_SWEEP_MINUTES
from meetrelay.utils.logger import logger
from meetrelay.workers.redis_config import redis_settings
from meetrelay.workers.tasks import send_session_notification, expire_overdue_sessions


async def startup(ctx):
    """Worker startup hook."""
    logger.info("ARQ worker starting up...")
    ctx["startup_complete"] = True


async def shutdown(ctx):
    """Worker shutdown hook."""
    logger.info("ARQ worker shutting down...")


class WorkerSettings:
    """ARQ worker settings."""

    functions = [
        send_session_notification,
        expire_overdue_sessions,
    ]

    cron_jobs = [
        cron(
            expire_overdue_sessions,
            minute=set(range(0, 60, EXPIRY_SWEEP_MINUTES)),
        ),
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = redis_settings

    # Job configuration
    max_jobs = 10
    job_timeout = 60
    keep_result = 3600
    retry_jobs = True
    max_tries = 3
