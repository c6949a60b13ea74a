"""
Device-side push registration.

PushRegistrar owns the channel lifecycle on one device: permission, creating
or reusing the push channel, and mirroring it into the server's subscription
store. None of its operations raise; failures come back as RegistrarResult.

State that the UI reads (permission, subscribed) lives on a RegistrarContext
created once per application session and passed into every call.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Optional

from family_news.client.platform import Permission, PushPlatform
from family_news.client.store_client import HttpSubscriptionStore

logger = logging.getLogger(__name__)


@dataclass
class RegistrarContext:
    permission: Permission = Permission.DEFAULT
    subscribed: bool = False


@dataclass(frozen=True)
class RegistrarResult:
    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "RegistrarResult":
        return cls(success=True)

    @classmethod
    def fail(cls, error: str) -> "RegistrarResult":
        return cls(success=False, error=error)


def decode_application_server_key(key: str) -> bytes:
    """base64url (padding optional) → raw bytes, as the push platform expects."""
    normalized = key.strip().replace("+", "-").replace("/", "_")
    padding = "=" * (-len(normalized) % 4)
    return base64.urlsafe_b64decode(normalized + padding)


class PushRegistrar:
    def __init__(self, platform: PushPlatform, store: HttpSubscriptionStore, server_key: str = "") -> None:
        self.platform = platform
        self.store = store
        self.server_key = server_key

    @classmethod
    async def from_server(cls, platform: PushPlatform, store: HttpSubscriptionStore) -> "PushRegistrar":
        """Build a registrar using the public key the server publishes.

        A server without VAPID keys yields an empty key; subscribe() then
        reports "VAPID key missing".
        """
        try:
            server_key = await store.fetch_server_key()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not fetch VAPID public key: %s", exc)
            server_key = ""
        return cls(platform, store, server_key)

    def check_support(self) -> bool:
        return self.platform.is_supported()

    async def request_permission(self, ctx: RegistrarContext) -> bool:
        if not self.check_support():
            logger.info("Push notifications not supported")
            return False
        ctx.permission = await self.platform.request_permission()
        return ctx.permission is Permission.GRANTED

    async def subscribe(self, ctx: RegistrarContext, user_id: str) -> RegistrarResult:
        if not self.check_support():
            logger.info("Push notifications not supported")
            return RegistrarResult.fail("Not supported")

        if not self.server_key:
            logger.error("VAPID public key not configured")
            return RegistrarResult.fail("VAPID key missing")

        try:
            application_server_key = decode_application_server_key(self.server_key)
        except ValueError as exc:
            logger.error("VAPID public key is not valid base64url: %s", exc)
            return RegistrarResult.fail("VAPID key invalid")

        try:
            channel = await self.platform.get_current_channel()
            if channel is None:
                channel = await self.platform.subscribe(application_server_key)
            await self.store.upsert(user_id, channel)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error subscribing to push: %s", exc)
            return RegistrarResult.fail(str(exc))

        ctx.subscribed = True
        return RegistrarResult.ok()

    async def unsubscribe(self, ctx: RegistrarContext, user_id: str) -> RegistrarResult:
        try:
            channel = await self.platform.get_current_channel()
            if channel is not None:
                # Store first: a failed release must not leave a record for a
                # channel this device has already given up.
                await self.store.delete(user_id, channel.endpoint)
                await self.platform.release(channel)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error unsubscribing: %s", exc)
            return RegistrarResult.fail(str(exc))

        ctx.subscribed = False
        return RegistrarResult.ok()

    async def check_status(self, ctx: RegistrarContext) -> bool:
        if not self.check_support():
            return False
        try:
            channel = await self.platform.get_current_channel()
        except Exception as exc:  # noqa: BLE001
            logger.error("Error checking subscription: %s", exc)
            return False
        ctx.subscribed = channel is not None
        ctx.permission = self.platform.permission()
        return ctx.subscribed
