from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from family_news.config import settings


def _user_id_as_str(value: Any) -> Any:
    # The user collaborator may hand out integer or UUID-string ids
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


UserId = Annotated[str, BeforeValidator(_user_id_as_str)]


class PushKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class PushSubscribeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UserId = Field(alias="userId", min_length=1)
    endpoint: str = Field(min_length=1, max_length=1000)
    keys: PushKeys


class UnsubscribeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UserId = Field(alias="userId", min_length=1)
    endpoint: str = Field(min_length=1)


class NotificationRequest(BaseModel):
    """Broadcast instruction: send to every subscription not owned by exclude_user_id."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    body: Optional[str] = None
    url: Optional[str] = None
    exclude_user_id: UserId = Field(alias="excludeUserId", min_length=1)


class NotificationPayload(BaseModel):
    """What actually travels to the device, with every field filled in."""

    title: str
    body: str
    url: str

    @classmethod
    def with_defaults(
        cls,
        title: Optional[str] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
    ) -> "NotificationPayload":
        # Empty strings count as absent
        return cls(
            title=title or settings.PUSH_DEFAULT_TITLE,
            body=body or settings.PUSH_DEFAULT_BODY,
            url=url or "/",
        )

    @classmethod
    def from_wire(cls, data: Any) -> "NotificationPayload":
        """Build a payload from decoded JSON, ignoring fields of the wrong type."""
        if not isinstance(data, dict):
            data = {}

        def _text(key: str) -> Optional[str]:
            value = data.get(key)
            return value if isinstance(value, str) else None

        return cls.with_defaults(_text("title"), _text("body"), _text("url"))

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode()


class DispatchSummary(BaseModel):
    message: str
    sent: int
    failed: int
