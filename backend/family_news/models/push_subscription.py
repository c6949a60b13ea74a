from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from family_news.database import Base


class PushSubscription(Base):
    __tablename__ = "push_subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"),)

    id = Column(Integer, primary_key=True, index=True)
    # Issued by the external user collaborator; no users table lives here.
    user_id = Column(String(255), nullable=False, index=True)
    endpoint = Column(String(1000), nullable=False, index=True)
    p256dh = Column(String(255), nullable=False)  # Client public key
    auth = Column(String(255), nullable=False)  # Auth secret
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<PushSubscription {self.user_id} {self.endpoint[:40]}>"
