"""Subscription store — record API over the push_subscriptions table.

Abstraction layer: the dispatcher and the HTTP routes only talk to
SubscriptionStore, never to the session directly.

Every SQLAlchemy failure is rolled back and re-raised as
SubscriptionStoreError so callers can decide whether it is fatal (reads
during dispatch) or merely logged (cleanup deletes).
"""

import logging

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from family_news.core.errors import SubscriptionStoreError
from family_news.models.push_subscription import PushSubscription

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_NATIVE_UPSERT = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


class SubscriptionStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def upsert(self, user_id: str, endpoint: str, p256dh: str, auth: str) -> None:
        """Insert or refresh the record for (user_id, endpoint).

        Re-syncing an unchanged channel is a no-op apart from updated_at.
        Concurrent writers on the same key resolve last-write-wins.
        """
        try:
            insert = _NATIVE_UPSERT.get(self.db.get_bind().dialect.name)
            if insert is not None:
                stmt = insert(PushSubscription).values(
                    user_id=user_id,
                    endpoint=endpoint,
                    p256dh=p256dh,
                    auth=auth,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["user_id", "endpoint"],
                    set_={
                        "p256dh": stmt.excluded.p256dh,
                        "auth": stmt.excluded.auth,
                        "updated_at": func.now(),
                    },
                )
                self.db.execute(stmt)
            else:
                existing = (
                    self.db.query(PushSubscription)
                    .filter_by(user_id=user_id, endpoint=endpoint)
                    .with_for_update()
                    .first()
                )
                if existing:
                    existing.p256dh = p256dh
                    existing.auth = auth
                else:
                    self.db.add(PushSubscription(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise SubscriptionStoreError(f"Failed to save subscription: {exc}") from exc

    def delete_by_endpoint(self, endpoint: str) -> int:
        """Remove every record for a channel, whoever owns it."""
        return self._delete(PushSubscription.endpoint == endpoint)

    def delete_by_user_and_endpoint(self, user_id: str, endpoint: str) -> int:
        return self._delete(PushSubscription.user_id == user_id, PushSubscription.endpoint == endpoint)

    def list_excluding_user(self, user_id: str) -> list[PushSubscription]:
        try:
            return (
                self.db.query(PushSubscription)
                .filter(PushSubscription.user_id != user_id)
                .order_by(PushSubscription.id)
                .all()
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise SubscriptionStoreError(f"Failed to fetch subscriptions: {exc}") from exc

    def _delete(self, *criteria) -> int:
        try:
            removed = self.db.query(PushSubscription).filter(*criteria).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise SubscriptionStoreError(f"Failed to delete subscription: {exc}") from exc
        return removed
