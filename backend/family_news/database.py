import logging
from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from family_news.config import settings

logger = logging.getLogger(__name__)


_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

_engine_kwargs: dict = (
    {"connect_args": {"check_same_thread": False}}
    if _is_sqlite
    else {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}
)

engine = create_engine(settings.DATABASE_URL, **_engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create any missing tables. Alembic owns schema changes in production;
    this only bootstraps a fresh SQLite file for local runs."""
    if not _is_sqlite:
        return
    # Models must be registered on Base.metadata before create_all
    from family_news.models import push_subscription  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("SQLite schema ready at %s", settings.DATABASE_URL)
