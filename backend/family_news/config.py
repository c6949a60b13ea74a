from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./family_news.db"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Web Push (VAPID): generate with `family-news-generate-vapid >> .env`
    # Both keys are base64url; the private key may also be PEM or DER.
    VAPID_PRIVATE_KEY: str = ""
    VAPID_PUBLIC_KEY: str = ""
    VAPID_CLAIMS_EMAIL: str = "mailto:family-news@example.com"

    # Fallback text for payloads that arrive without a title or body
    PUSH_DEFAULT_TITLE: str = "Family News"
    PUSH_DEFAULT_BODY: str = "New article shared!"
    PUSH_TTL: int = 86_400  # seconds the push service may hold an undelivered message
    PUSH_TIMEOUT: float = 10.0  # seconds per send

    # Device side: where the registrar and dispatch trigger reach the server
    API_BASE_URL: str = "http://localhost:8000"

    model_config = {"env_file": ".env"}

    @property
    def push_configured(self) -> bool:
        return bool(self.VAPID_PUBLIC_KEY and self.VAPID_PRIVATE_KEY)


settings = Settings()
