"""
Web Push dispatch service.

Broadcasts one notification to every subscription not owned by the publishing
user. Sends run concurrently and every one of them is allowed to settle; the
caller gets a {sent, failed} summary rather than an exception for per-channel
problems. Subscriptions whose push service answers 404/410 are removed.
"""

import asyncio
import logging
from functools import lru_cache

from py_vapid import Vapid

from family_news.config import settings
from family_news.core.errors import PushNotConfiguredError, SubscriptionStoreError
from family_news.schemas.push import DispatchSummary, NotificationPayload, NotificationRequest
from family_news.services.transport import DeliveryResult, PushTarget, PushTransport, WebPushTransport
from family_news.storage import SubscriptionStore

logger = logging.getLogger(__name__)

NO_SUBSCRIPTIONS_MESSAGE = "No subscriptions to notify"
SENT_MESSAGE = "Notifications sent"


def load_vapid(private_key: str) -> Vapid:
    """Parse the VAPID private key (base64url raw/DER, or PEM)."""
    key = private_key.strip()
    try:
        if key.startswith("-----BEGIN"):
            return Vapid.from_pem(key.encode())
        return Vapid.from_string(private_key=key)
    except Exception as exc:  # noqa: BLE001  py_vapid raises several decode error types
        logger.error("VAPID private key could not be parsed: %s", exc)
        raise PushNotConfiguredError("Push notifications misconfigured: invalid VAPID private key") from exc


@lru_cache(maxsize=1)
def _web_push_transport() -> WebPushTransport:
    # Built once per process; settings are read at startup and never change.
    return WebPushTransport(
        load_vapid(settings.VAPID_PRIVATE_KEY),
        settings.VAPID_CLAIMS_EMAIL,
        ttl=settings.PUSH_TTL,
        timeout=settings.PUSH_TIMEOUT,
    )


def get_push_transport() -> PushTransport:
    """FastAPI dependency. Raises PushNotConfiguredError when VAPID keys are absent."""
    if not settings.push_configured:
        logger.error("VAPID keys not configured")
        raise PushNotConfiguredError()
    return _web_push_transport()


async def dispatch_notification(
    request: NotificationRequest,
    store: SubscriptionStore,
    transport: PushTransport,
) -> DispatchSummary:
    """Send *request* to every subscription except the publisher's own.

    Raises SubscriptionStoreError only if the targets cannot be loaded.
    """
    payload = NotificationPayload.with_defaults(request.title, request.body, request.url)

    subscriptions = store.list_excluding_user(request.exclude_user_id)
    if not subscriptions:
        return DispatchSummary(message=NO_SUBSCRIPTIONS_MESSAGE, sent=0, failed=0)

    # Detach from the session before any await; cleanup commits expire ORM rows.
    targets = [PushTarget.from_subscription(sub) for sub in subscriptions]
    data = payload.to_bytes()

    results = await asyncio.gather(
        *(_deliver(target, data, store, transport) for target in targets),
        return_exceptions=True,
    )

    sent = 0
    for target, result in zip(targets, results):
        if isinstance(result, BaseException):
            logger.warning("Unexpected push error for %s: %s", _short(target.endpoint), result)
        elif result.is_delivered:
            sent += 1
    failed = len(targets) - sent

    logger.info("Dispatched %r to %d subscription(s): sent=%d failed=%d", payload.title, len(targets), sent, failed)
    return DispatchSummary(message=SENT_MESSAGE, sent=sent, failed=failed)


async def _deliver(
    target: PushTarget,
    data: bytes,
    store: SubscriptionStore,
    transport: PushTransport,
) -> DeliveryResult:
    result = await transport.send(target, data)
    if result.is_delivered:
        return result

    if result.is_permanent:
        logger.info("Removing expired push subscription %s (HTTP %s)", _short(target.endpoint), result.status_code)
        _remove_dead_subscription(store, target.endpoint)
    else:
        logger.warning(
            "Push delivery failed for %s (HTTP %s): %s",
            _short(target.endpoint),
            result.status_code,
            result.error,
        )
    return result


def _remove_dead_subscription(store: SubscriptionStore, endpoint: str) -> None:
    # A failed cleanup must never change the dispatch result.
    try:
        store.delete_by_endpoint(endpoint)
    except SubscriptionStoreError as exc:
        logger.warning("Could not remove expired subscription %s: %s", _short(endpoint), exc)


def _short(endpoint: str) -> str:
    return endpoint if len(endpoint) <= 60 else f"{endpoint[:57]}..."
