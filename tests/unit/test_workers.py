"""Tests for ARQ worker tasks and the notification queue helper."""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from meetrelay.config import settings
from meetrelay.constants import SessionStatus
from meetrelay.services.notifier import NotificationService
from meetrelay.utils.notification_queue import queue_notification
from meetrelay.workers.config import WorkerSettings
from meetrelay.workers.redis_config import parse_redis_url
from meetrelay.workers.tasks import expire_overdue_sessions, send_session_notification


@pytest.mark.asyncio
async def test_notification_without_webhook_is_logged(monkeypatch):
    monkeypatch.setattr(settings, "notification_webhook_url", None)

    result = await send_session_notification({}, "Remote Session Ended", "bye")

    assert result == {"success": True, "delivered": False}


@pytest.mark.asyncio
async def test_notification_posts_to_webhook(monkeypatch):
    monkeypatch.setattr(settings, "notification_webhook_url", "https://hooks.test/notify")
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(handler)
    with patch("meetrelay.workers.tasks.httpx.AsyncClient", lambda **kw: real_client(transport=transport, **kw)):
        result = await send_session_notification({}, "New Remote Session Started", "hello")

    assert result == {"success": True, "delivered": True}
    assert str(seen[0].url) == "https://hooks.test/notify"
    assert json.loads(seen[0].content) == {"title": "New Remote Session Started", "content": "hello"}


@pytest.mark.asyncio
async def test_notification_webhook_rejection(monkeypatch):
    monkeypatch.setattr(settings, "notification_webhook_url", "https://hooks.test/notify")
    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))

    with patch("meetrelay.workers.tasks.httpx.AsyncClient", lambda **kw: real_client(transport=transport, **kw)):
        result = await send_session_notification({}, "t", "c")

    assert result["success"] is False


@pytest.mark.asyncio
async def test_expiry_sweep_task(db, manager, host, advance_clock):
    session, _ = manager.create(host.id, 5)
    advance_clock(6)

    result = await expire_overdue_sessions({})

    assert result == {"success": True, "sessions_expired": 1}
    db.refresh(session)
    assert session.status == SessionStatus.EXPIRED


@pytest.mark.asyncio
async def test_queue_notification_enqueues_job():
    pool = MagicMock()
    pool.enqueue_job = AsyncMock()
    pool.aclose = AsyncMock()

    with patch("meetrelay.utils.notification_queue.create_pool", AsyncMock(return_value=pool)):
        assert await queue_notification("title", "content") is True

    pool.enqueue_job.assert_awaited_once_with("send_session_notification", "title", "content")
    pool.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_queue_notification_failure_is_reported():
    with patch("meetrelay.utils.notification_queue.create_pool", AsyncMock(side_effect=ConnectionError("down"))):
        assert await queue_notification("title", "content") is False


@pytest.mark.asyncio
async def test_notification_service_uses_queue():
    with patch("meetrelay.services.notifier.queue_notification", AsyncMock(return_value=True)) as queued:
        assert await NotificationService().notify("title", "content") is True
    queued.assert_awaited_once_with("title", "content")


def test_parse_redis_url():
    parsed = parse_redis_url("rediss://user:pw@cache.internal:6380/2")

    assert parsed.host == "cache.internal"
    assert parsed.port == 6380
    assert parsed.password == "pw"
    assert parsed.database == 2
    assert parsed.ssl is True


def test_worker_registers_tasks():
    names = {f.__name__ for f in WorkerSettings.functions}
    assert names == {"send_session_notification", "expire_overdue_sessions"}
    assert len(WorkerSettings.cron_jobs) == 1
