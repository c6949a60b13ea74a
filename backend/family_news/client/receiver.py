"""
Background receiver, the device half that runs without any open window.

The hosting platform delivers two kinds of events, one at a time:

  push               — render a system notification from the payload
  notification click — focus or open a window at the payload's url

Handlers register their work with event.wait_until(); the host awaits
event.settle() before it may suspend the context again.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Optional
from urllib.parse import urlsplit

from family_news.client.platform import Notification, WorkerPlatform
from family_news.schemas.push import NotificationPayload

logger = logging.getLogger(__name__)

OPEN_ACTION = "open"
DISMISS_ACTION = "dismiss"

_DEFAULT_PORTS = {"http": 80, "https": 443}


class ExtendableEvent:
    def __init__(self) -> None:
        self._pending: list[asyncio.Future] = []

    def wait_until(self, awaitable: Awaitable[Any]) -> None:
        """Keep the background context alive until *awaitable* finishes."""
        self._pending.append(asyncio.ensure_future(awaitable))

    async def settle(self) -> None:
        """Await everything registered; the first failure propagates to the host."""
        if self._pending:
            await asyncio.gather(*self._pending)

    @property
    def extended(self) -> bool:
        return bool(self._pending)


class PushEvent(ExtendableEvent):
    def __init__(self, data: Optional[bytes] = None) -> None:
        super().__init__()
        self.data = data


class NotificationClickEvent(ExtendableEvent):
    def __init__(self, notification: Notification, action: str = "") -> None:
        super().__init__()
        self.notification = notification
        self.action = action


def origin_of(url: str) -> Optional[tuple[str, str, Optional[int]]]:
    """(scheme, host, port) with default ports filled in, or None if *url* has no origin."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    scheme = parts.scheme.lower()
    return scheme, parts.hostname.lower(), port or _DEFAULT_PORTS.get(scheme)


def same_origin(url: str, origin: str) -> bool:
    mine = origin_of(origin)
    return mine is not None and origin_of(url) == mine


class BackgroundReceiver:
    def __init__(self, platform: WorkerPlatform, icon: str = "/pwa-192x192.png") -> None:
        self.platform = platform
        self.icon = icon

    def on_push(self, event: PushEvent) -> None:
        if not event.data:
            logger.info("Push event but no data")
            return

        payload = self.decode(event.data)
        options = {
            "body": payload.body,
            "icon": self.icon,
            "badge": self.icon,
            "vibrate": [100, 50, 100],
            "data": {"url": payload.url},
            "actions": [
                {"action": OPEN_ACTION, "title": "View Article"},
                {"action": DISMISS_ACTION, "title": "Dismiss"},
            ],
        }
        event.wait_until(self.platform.show_notification(payload.title, options))

    def on_notification_click(self, event: NotificationClickEvent) -> None:
        event.notification.close()
        if event.action == DISMISS_ACTION:
            return

        url = (event.notification.data or {}).get("url") or "/"
        event.wait_until(self._focus_or_open(url))

    @staticmethod
    def decode(data: bytes) -> NotificationPayload:
        try:
            decoded = json.loads(data)
        except (UnicodeDecodeError, ValueError):
            logger.warning("Push payload is not JSON; showing defaults")
            decoded = {}
        return NotificationPayload.from_wire(decoded)

    async def _focus_or_open(self, url: str) -> Any:
        for window in await self.platform.match_windows(include_uncontrolled=True):
            if same_origin(window.url, self.platform.origin):
                await window.navigate(url)
                return await window.focus()
        return await self.platform.open_window(url)
