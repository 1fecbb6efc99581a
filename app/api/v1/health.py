"""Health check endpoint with database connectivity and mail/rate-limit mode."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.core.rate_limit import limiter
from app.schemas.health import HealthResponse
from app.services.notifier import is_smtp_configured

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """
    Return service health status and database connectivity.

    email is "log-only" when SMTP is not configured: reset links and invite codes are
    then written to the log only.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
        email="smtp" if is_smtp_configured(settings) else "log-only",
        rate_limiting=limiter.enabled,
    )
