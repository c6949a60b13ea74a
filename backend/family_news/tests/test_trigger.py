"""
Tests for the fire-and-forget dispatch trigger.

The server is replaced by httpx.MockTransport handlers.
"""

import asyncio
import json
import logging

import httpx
import pytest

from family_news.client.trigger import DispatchTrigger


def _trigger(handler) -> DispatchTrigger:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://testserver")
    return DispatchTrigger(client=client)


@pytest.mark.asyncio
async def test_fire_posts_request_in_background():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/api/send-notification"
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"message": "Notifications sent", "sent": 2, "failed": 0})

    trigger = _trigger(handler)
    task = trigger.fire("u1", title="Hi", url="/x")
    assert task is not None
    assert seen == []  # nothing happens until the caller yields

    await trigger.aclose()
    assert seen == [{"excludeUserId": "u1", "title": "Hi", "url": "/x"}]


@pytest.mark.asyncio
async def test_server_error_is_logged_not_raised(caplog):
    trigger = _trigger(lambda request: httpx.Response(500, json={"error": "Push notifications not configured"}))
    with caplog.at_level(logging.WARNING, logger="family_news.client.trigger"):
        trigger.fire("u1")
        await trigger.aclose()
    assert "Notification dispatch failed" in caplog.text


@pytest.mark.asyncio
async def test_unreachable_server_is_logged_not_raised(caplog):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    trigger = _trigger(handler)
    with caplog.at_level(logging.WARNING, logger="family_news.client.trigger"):
        trigger.fire("u1")
        await trigger.aclose()
    assert "connection refused" in caplog.text


@pytest.mark.asyncio
async def test_fire_does_not_wait_for_slow_server():
    release = asyncio.Event()

    async def handler(request):
        await release.wait()
        return httpx.Response(200, json={"message": "Notifications sent", "sent": 1, "failed": 0})

    trigger = _trigger(handler)
    task = trigger.fire("u1")
    await asyncio.sleep(0)
    assert not task.done()

    release.set()
    await trigger.aclose()
    assert task.done()


@pytest.mark.asyncio
async def test_article_shared_builds_message():
    seen: list[dict] = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"message": "Notifications sent", "sent": 1, "failed": 0})

    trigger = _trigger(handler)
    trigger.article_shared("u1", "Ana", "Why bees dance")
    await trigger.aclose()
    assert seen == [{"excludeUserId": "u1", "title": "Ana shared an article", "body": "Why bees dance", "url": "/"}]


def test_fire_without_event_loop_is_dropped():
    trigger = _trigger(lambda request: httpx.Response(200, json={}))
    assert trigger.fire("u1") is None
