"""HTTP client for the subscription routes in family_news.api.push."""

import logging
from typing import Optional

import httpx

from family_news.client.platform import PushChannel
from family_news.config import settings
from family_news.core.errors import SubscriptionStoreError

logger = logging.getLogger(__name__)


class HttpSubscriptionStore:
    def __init__(
        self,
        base_url: str = settings.API_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)

    async def fetch_server_key(self) -> str:
        data = await self._request("GET", "/api/push/vapid-public-key")
        return data.get("key") or ""

    async def upsert(self, user_id: str, channel: PushChannel) -> None:
        await self._request(
            "POST",
            "/api/push/subscribe",
            json={
                "userId": user_id,
                "endpoint": channel.endpoint,
                "keys": {"p256dh": channel.p256dh, "auth": channel.auth},
            },
        )

    async def delete(self, user_id: str, endpoint: str) -> None:
        await self._request("DELETE", "/api/push/unsubscribe", json={"userId": user_id, "endpoint": endpoint})

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        try:
            resp = await self._client.request(method, path, json=json)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise SubscriptionStoreError(
                f"{method} {path} failed: {exc.response.status_code} {_error_text(exc.response)}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SubscriptionStoreError(f"{method} {path} failed: {exc}") from exc


def _error_text(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)
