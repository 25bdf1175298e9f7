"""
Health check and list configuration endpoints.

Provides basic health and status information about the adapter.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from metro_adapter.config import get_settings
from metro_adapter.database import get_db

router = APIRouter()


def _check_database(db: Session) -> str:
    try:
        db.execute(text("SELECT 1"))
        return "connected"
    except SQLAlchemyError as e:
        return f"error: {str(e)}"


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> dict:
    """
    Basic health check endpoint.

    Example response:
        {
            "status": "healthy",
            "version": "0.1.0",
            "timestamp": "2026-01-01T00:00:00+00:00",
            "database": "connected"
        }
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": settings.VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": _check_database(db),
    }


@router.get("/health/ready")
async def readiness_check(db: Session = Depends(get_db)) -> dict:
    """
    Readiness check for the service.

    The adapter is only ready when the bots store is reachable.
    """
    database = _check_database(db)
    return {
        "ready": database == "connected",
        "checks": {
            "database": "ok" if database == "connected" else f"failed: {database}"
        }
    }


@router.get("/list-config")
async def list_config() -> dict:
    """List configuration the review framework registers with (no secret)."""
    return get_settings().listing.public_dict()
