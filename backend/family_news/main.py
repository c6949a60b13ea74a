"""
family_news — FastAPI backend entry point.

Owns the push notification side of Family News: device subscription
storage and the broadcast endpoint other parts of the app fire after
someone shares an article.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from family_news.api import health, notifications, push
from family_news.config import settings
from family_news.core.errors import PushNotConfiguredError, SubscriptionStoreError
from family_news.database import create_tables

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    if not settings.push_configured:
        logger.warning("VAPID keys not set — /api/send-notification will answer 500")
    yield


app = FastAPI(
    title="family_news",
    description="Push notifications for a small circle of readers",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
# allow_origins=["*"] is incompatible with allow_credentials=True in the CORS
# spec. When the wildcard is present (dev), switch to allow_origin_regex=".*"
# which achieves the same effect without triggering Starlette's guard.
_cors_origins = [o for o in settings.CORS_ORIGINS if o != "*"]
_cors_regex = ".*" if len(_cors_origins) < len(settings.CORS_ORIGINS) else None

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_origin_regex=_cors_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(health.router)
app.include_router(push.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")

# ---------------------------------------------------------------------------
# Custom exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        return JSONResponse(status_code=405, content={"error": "Method not allowed"}, headers=exc.headers)
    return await http_exception_handler(request, exc)


@app.exception_handler(PushNotConfiguredError)
async def push_not_configured_handler(request: Request, exc: PushNotConfiguredError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(SubscriptionStoreError)
async def store_error_handler(request: Request, exc: SubscriptionStoreError) -> JSONResponse:
    logger.error("Subscription store failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})
