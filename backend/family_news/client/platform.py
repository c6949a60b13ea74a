"""
Device platform contracts.

The registrar and the background receiver never talk to a browser or OS
directly; they are handed objects satisfying these protocols. A web shell,
a desktop wrapper and the test fakes all plug in here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol


class Permission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class PushChannel:
    """A device's push-receiving address as issued by the push service."""

    endpoint: str
    p256dh: str  # Client public key
    auth: str  # Auth secret


# ── Foreground (registrar) ────────────────────────────────────────────────────


class PushPlatform(Protocol):
    def is_supported(self) -> bool: ...

    def permission(self) -> Permission: ...

    async def request_permission(self) -> Permission: ...

    async def get_current_channel(self) -> Optional[PushChannel]: ...

    async def subscribe(self, application_server_key: bytes) -> PushChannel: ...

    async def release(self, channel: PushChannel) -> None: ...


# ── Background (receiver) ─────────────────────────────────────────────────────


class Notification(Protocol):
    title: str
    data: dict[str, Any]

    def close(self) -> None: ...


class WindowClient(Protocol):
    url: str

    async def navigate(self, url: str) -> Any: ...

    async def focus(self) -> Any: ...


class WorkerPlatform(Protocol):
    # scheme://host[:port] the background context was installed from
    origin: str

    async def show_notification(self, title: str, options: dict[str, Any]) -> None: ...

    async def match_windows(self, include_uncontrolled: bool = True) -> list[WindowClient]: ...

    async def open_window(self, url: str) -> Any: ...
