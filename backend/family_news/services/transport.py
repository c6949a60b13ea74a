"""
Web Push transport — one signed message to one channel.

The transport never raises for a delivery failure: every send resolves to a
DeliveryResult so the dispatcher can fold it into its counts. HTTP 404/410
from the push service mean the channel is gone for good; anything else is
treated as transient.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from py_vapid import Vapid
from pywebpush import WebPushException, webpush

logger = logging.getLogger(__name__)

PERMANENT_STATUS_CODES = frozenset({404, 410})


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    FAILED_TRANSIENT = "failed-transient"
    FAILED_PERMANENT = "failed-permanent"


@dataclass(frozen=True)
class PushTarget:
    endpoint: str
    p256dh: str
    auth: str

    @classmethod
    def from_subscription(cls, sub) -> "PushTarget":
        return cls(endpoint=sub.endpoint, p256dh=sub.p256dh, auth=sub.auth)

    def subscription_info(self) -> dict:
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}


@dataclass(frozen=True)
class DeliveryResult:
    endpoint: str
    outcome: DeliveryOutcome
    status_code: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def delivered(cls, endpoint: str) -> "DeliveryResult":
        return cls(endpoint=endpoint, outcome=DeliveryOutcome.DELIVERED)

    @classmethod
    def failure(cls, endpoint: str, status_code: Optional[int], error: str) -> "DeliveryResult":
        outcome = (
            DeliveryOutcome.FAILED_PERMANENT
            if status_code in PERMANENT_STATUS_CODES
            else DeliveryOutcome.FAILED_TRANSIENT
        )
        return cls(endpoint=endpoint, outcome=outcome, status_code=status_code, error=error)

    @property
    def is_delivered(self) -> bool:
        return self.outcome is DeliveryOutcome.DELIVERED

    @property
    def is_permanent(self) -> bool:
        return self.outcome is DeliveryOutcome.FAILED_PERMANENT


class PushTransport(Protocol):
    async def send(self, target: PushTarget, payload: bytes) -> DeliveryResult: ...


class WebPushTransport:
    """pywebpush-backed transport. Sends run in worker threads since
    pywebpush blocks on requests."""

    def __init__(self, vapid: Vapid, claims_email: str, ttl: int = 0, timeout: Optional[float] = None) -> None:
        self._vapid = vapid
        self._claims_email = claims_email
        self._ttl = ttl
        self._timeout = timeout

    async def send(self, target: PushTarget, payload: bytes) -> DeliveryResult:
        try:
            await asyncio.to_thread(self._send_blocking, target, payload)
        except WebPushException as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            return DeliveryResult.failure(target.endpoint, status_code, str(exc))
        except Exception as exc:  # noqa: BLE001  network errors from requests, bad client keys
            return DeliveryResult.failure(target.endpoint, None, str(exc))
        return DeliveryResult.delivered(target.endpoint)

    def _send_blocking(self, target: PushTarget, payload: bytes) -> None:
        webpush(
            subscription_info=target.subscription_info(),
            data=payload,
            vapid_private_key=self._vapid,
            # pywebpush fills in aud/exp on this dict, so it must be fresh per send
            vapid_claims={"sub": self._claims_email},
            ttl=self._ttl,
            timeout=self._timeout,
        )
