"""
Fire-and-forget dispatch trigger.

Called by activity code (an article was added, a book was finished) after
its own work has succeeded. fire() schedules the POST to
/api/send-notification as a background task and returns at once; whatever
happens to that request is logged and dropped, so the triggering action
can never fail or wait because of it.
"""

import asyncio
import logging
from typing import Optional

import httpx

from family_news.config import settings

logger = logging.getLogger(__name__)


class DispatchTrigger:
    def __init__(
        self,
        base_url: str = settings.API_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)
        # Strong refs so pending tasks are not garbage collected mid-flight
        self._pending: set[asyncio.Task] = set()

    def fire(
        self,
        exclude_user_id: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Optional[asyncio.Task]:
        payload = {"excludeUserId": str(exclude_user_id)}
        for key, value in (("title", title), ("body", body), ("url", url)):
            if value is not None:
                payload[key] = value

        try:
            task = asyncio.get_running_loop().create_task(self._send(payload))
        except RuntimeError:
            logger.warning("No running event loop — notification for %s dropped", exclude_user_id)
            return None

        self._pending.add(task)
        task.add_done_callback(self._finished)
        return task

    def article_shared(self, user_id: str, user_name: str, article_title: Optional[str] = None) -> Optional[asyncio.Task]:
        return self.fire(
            exclude_user_id=user_id,
            title=f"{user_name} shared an article",
            body=article_title or None,
            url="/",
        )

    async def drain(self) -> None:
        """Wait for in-flight dispatches. Used at shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        await self._client.aclose()

    async def _send(self, payload: dict) -> None:
        resp = await self._client.post("/api/send-notification", json=payload)
        resp.raise_for_status()
        data = resp.json()
        logger.info("Notification dispatched: sent=%s failed=%s", data.get("sent"), data.get("failed", 0))

    def _finished(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Notification dispatch failed: %s", exc)
