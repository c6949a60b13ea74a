"""
Tests for the subscription store.

Covers:
  - upsert keyed on (user_id, endpoint): idempotent, refreshes keys
  - one user, many devices
  - list_excluding_user
  - delete_by_endpoint vs delete_by_user_and_endpoint
  - read failures surface as SubscriptionStoreError
  - last-write-wins between a cleanup delete and a resubscribe
"""

import pytest

from family_news.core.errors import SubscriptionStoreError
from family_news.database import Base
from family_news.models.push_subscription import PushSubscription
from family_news.tests.conftest import add_subscription, engine


def _count(db) -> int:
    return db.query(PushSubscription).count()


def _rows_for(db, user_id: str) -> list[PushSubscription]:
    return db.query(PushSubscription).filter_by(user_id=user_id).order_by(PushSubscription.id).all()


class TestUpsert:
    def test_creates_record(self, store, db):
        store.upsert("u1", "https://push.example.com/e1", "pk", "secret")
        row = db.query(PushSubscription).one()
        assert (row.user_id, row.endpoint, row.p256dh, row.auth) == ("u1", "https://push.example.com/e1", "pk", "secret")

    def test_same_key_twice_keeps_one_record(self, store, db):
        store.upsert("u1", "e1", "pk", "secret")
        store.upsert("u1", "e1", "pk", "secret")
        assert _count(db) == 1

    def test_resync_refreshes_keys(self, store, db):
        store.upsert("u1", "e1", "old-pk", "old-secret")
        store.upsert("u1", "e1", "new-pk", "new-secret")
        db.expire_all()
        row = db.query(PushSubscription).one()
        assert row.p256dh == "new-pk"
        assert row.auth == "new-secret"

    def test_user_may_own_many_devices(self, store, db):
        store.upsert("u1", "e1", "pk", "secret")
        store.upsert("u1", "e2", "pk", "secret")
        assert len(_rows_for(db, "u1")) == 2

    def test_same_endpoint_different_users_are_distinct(self, store, db):
        store.upsert("u1", "shared", "pk", "secret")
        store.upsert("u2", "shared", "pk", "secret")
        assert _count(db) == 2


class TestQueries:
    def test_list_excluding_user(self, store):
        add_subscription(store, "u1", "e1")
        add_subscription(store, "u2", "e2")
        add_subscription(store, "u3", "e3")
        endpoints = [s.endpoint for s in store.list_excluding_user("u1")]
        assert endpoints == ["e2", "e3"]

    def test_list_excluding_unknown_user_returns_everything(self, store):
        add_subscription(store, "u1", "e1")
        add_subscription(store, "u2", "e2")
        assert len(store.list_excluding_user("nobody")) == 2

    def test_list_excluding_only_subscriber_is_empty(self, store):
        add_subscription(store, "u1", "e1")
        add_subscription(store, "u1", "e2")
        assert store.list_excluding_user("u1") == []

    def test_read_failure_raises_store_error(self, store):
        Base.metadata.drop_all(bind=engine)
        with pytest.raises(SubscriptionStoreError):
            store.list_excluding_user("u1")


class TestDelete:
    def test_delete_by_user_and_endpoint_only_touches_that_user(self, store, db):
        add_subscription(store, "u1", "shared")
        add_subscription(store, "u2", "shared")
        assert store.delete_by_user_and_endpoint("u1", "shared") == 1
        remaining = db.query(PushSubscription).all()
        assert [(r.user_id, r.endpoint) for r in remaining] == [("u2", "shared")]

    def test_delete_by_endpoint_removes_every_owner(self, store, db):
        add_subscription(store, "u1", "shared")
        add_subscription(store, "u2", "shared")
        add_subscription(store, "u2", "other")
        assert store.delete_by_endpoint("shared") == 2
        assert [r.endpoint for r in db.query(PushSubscription).all()] == ["other"]

    def test_delete_missing_is_noop(self, store):
        assert store.delete_by_endpoint("ghost") == 0
        assert store.delete_by_user_and_endpoint("u1", "ghost") == 0

    def test_delete_failure_raises_store_error(self, store):
        Base.metadata.drop_all(bind=engine)
        with pytest.raises(SubscriptionStoreError):
            store.delete_by_endpoint("e1")


class TestLastWriteWins:
    """A dead-channel cleanup and a resubscribe racing on the same key:
    whichever write lands last decides whether the record exists."""

    def test_resubscribe_after_cleanup_restores_record(self, store, db):
        add_subscription(store, "u1", "e1")
        store.delete_by_endpoint("e1")
        add_subscription(store, "u1", "e1", p256dh="fresh-pk")
        rows = _rows_for(db, "u1")
        assert [(r.endpoint, r.p256dh) for r in rows] == [("e1", "fresh-pk")]

    def test_cleanup_after_resubscribe_removes_record(self, store, db):
        add_subscription(store, "u1", "e1")
        add_subscription(store, "u1", "e1", p256dh="fresh-pk")
        store.delete_by_endpoint("e1")
        assert _rows_for(db, "u1") == []
