"""
Web Push subscription management.

GET    /push/vapid-public-key  — return the VAPID public key for device subscription
POST   /push/subscribe          — upsert a push subscription keyed on (userId, endpoint)
DELETE /push/unsubscribe        — remove a push subscription
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from family_news.config import settings
from family_news.database import get_db
from family_news.schemas.push import PushSubscribeRequest, UnsubscribeRequest
from family_news.storage import SubscriptionStore

router = APIRouter(prefix="/push", tags=["push"])


def get_subscription_store(db: Session = Depends(get_db)) -> SubscriptionStore:
    return SubscriptionStore(db)


@router.get("/vapid-public-key")
async def get_vapid_public_key() -> dict:
    """Return the VAPID public key so the device can subscribe."""
    return {"key": settings.VAPID_PUBLIC_KEY}


@router.post("/subscribe")
async def subscribe(
    data: PushSubscribeRequest,
    store: SubscriptionStore = Depends(get_subscription_store),
) -> dict:
    """Upsert a device push subscription for a user."""
    store.upsert(data.user_id, data.endpoint, data.keys.p256dh, data.keys.auth)
    return {"status": "subscribed"}


@router.delete("/unsubscribe")
async def unsubscribe(
    data: UnsubscribeRequest,
    store: SubscriptionStore = Depends(get_subscription_store),
) -> dict:
    """Remove a push subscription."""
    store.delete_by_user_and_endpoint(data.user_id, data.endpoint)
    return {"status": "unsubscribed"}
