from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from family_news.config import settings
from family_news.database import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> dict:
    push = "configured" if settings.push_configured else "disabled"
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected", "push": push}
    except Exception as exc:
        return {"status": "unhealthy", "database": "disconnected", "push": push, "error": str(exc)}
