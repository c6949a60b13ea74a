"""
Pytest fixtures shared across all test modules.
Uses an in-memory SQLite database with StaticPool so all connections
share a single in-memory DB — no real Postgres and no real push service
required for tests.
"""

import os

# Set env vars BEFORE any family_news module is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["VAPID_PUBLIC_KEY"] = "test-public-key"
os.environ["VAPID_PRIVATE_KEY"] = "test-private-key"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Import app modules AFTER env vars are set
from family_news.database import Base, get_db  # noqa: E402
from family_news.main import app  # noqa: E402
from family_news.services.push_service import get_push_transport  # noqa: E402
from family_news.services.transport import DeliveryResult, PushTarget  # noqa: E402
from family_news.storage import SubscriptionStore  # noqa: E402

# Single shared in-memory SQLite engine — StaticPool ensures all
# connections share the same DB instance.
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db):
    return SubscriptionStore(db)


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def client(db, transport):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_transport] = lambda: transport
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeTransport:
    """Records every send. Endpoints listed in *statuses* fail with that HTTP
    status; endpoints in *raises* blow up instead of returning a result."""

    def __init__(self, statuses: dict[str, int] | None = None, raises: set[str] | None = None):
        self.statuses = statuses or {}
        self.raises = raises or set()
        self.sent: list[tuple[PushTarget, bytes]] = []

    @property
    def endpoints(self) -> list[str]:
        return [target.endpoint for target, _ in self.sent]

    async def send(self, target: PushTarget, payload: bytes) -> DeliveryResult:
        self.sent.append((target, payload))
        if target.endpoint in self.raises:
            raise RuntimeError(f"transport exploded for {target.endpoint}")
        status = self.statuses.get(target.endpoint)
        if status is None:
            return DeliveryResult.delivered(target.endpoint)
        return DeliveryResult.failure(target.endpoint, status, f"Push failed: {status}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def add_subscription(store: SubscriptionStore, user_id: str, endpoint: str, p256dh="p256dh-key", auth="auth-secret"):
    store.upsert(user_id, endpoint, p256dh, auth)


def subscribe_payload(user_id="u1", endpoint="https://push.example.com/e1", p256dh="p256dh-key", auth="auth-secret"):
    return {"userId": user_id, "endpoint": endpoint, "keys": {"p256dh": p256dh, "auth": auth}}
