"""
Dispatch trigger.

POST /send-notification — broadcast {title?, body?, url?} to every
subscription not owned by excludeUserId and report {message, sent, failed}.

Any other verb is answered 405 by the router. Missing VAPID keys and store
read failures are turned into {"error": ...} responses by the handlers in
family_news.main; anything else that escapes the dispatch is answered here
with a 500 carrying the exception message.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from family_news.api.push import get_subscription_store
from family_news.core.errors import PushError
from family_news.schemas.push import DispatchSummary, NotificationRequest
from family_news.services.push_service import dispatch_notification, get_push_transport
from family_news.services.transport import PushTransport
from family_news.storage import SubscriptionStore

logger = logging.getLogger(__name__)
router = APIRouter(tags=["notifications"])


@router.post("/send-notification", response_model=DispatchSummary)
async def send_notification(
    data: NotificationRequest,
    transport: PushTransport = Depends(get_push_transport),
    store: SubscriptionStore = Depends(get_subscription_store),
):
    try:
        return await dispatch_notification(data, store, transport)
    except PushError:
        raise
    except Exception as exc:
        logger.exception("Error sending notifications")
        return JSONResponse(status_code=500, content={"error": str(exc)})
