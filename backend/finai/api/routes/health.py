"""
Health check endpoints
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from finai.api.responses import error_response
from finai.core.config import get_settings
from finai.core.database import get_db
from finai.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)
router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
async def root_status():
    """
    Server status and active analysis mode

    Returns:
        dict: message, status, mode ("demo" or "groq"), timestamp
    """
    settings = get_settings()
    return {
        "message": f"{settings.app_name} Server is running!",
        "status": "OK",
        "mode": settings.llm_mode,
        "timestamp": _now(),
    }


@router.get("/health/liveness")
async def liveness_check():
    """Is the service alive?"""
    return {
        "status": "alive",
        "timestamp": _now()
    }


@router.get("/health/readiness")
async def readiness_check(db: Session = Depends(get_db)):
    """Is the database reachable?"""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}", exc_info=True)
        return error_response(503, "Service is not ready", details=str(e))

    return {
        "status": "ready",
        "mode": get_settings().llm_mode,
        "timestamp": _now()
    }
