"""Liveness endpoints probed by the monitoring bot.

Unauthenticated and read-only. `/health/db` answers 500 when the store is
unreachable so a plain status check is enough for the prober.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_db_session
from app.core.env import env_int
from app.models.log import Log, LogLevel
from app.schemas.bots import DbHealthResponse, ErrorLogEntry, RecentErrorsResponse, SiteHealthResponse


UTC = timezone.utc
RECENT_ERRORS_LIMIT = 50

logger = logging.getLogger("agentpro")

router = APIRouter()


@router.get("/health", response_model=SiteHealthResponse)
def site_health() -> SiteHealthResponse:
    return SiteHealthResponse(timestamp=datetime.now(tz=UTC))


@router.get("/health/db", response_model=DbHealthResponse, responses={500: {"model": DbHealthResponse}})
def db_health(db: Session = Depends(get_db_session)):
    now = datetime.now(tz=UTC)
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(json.dumps({"event": "db_health_failed", "error_type": type(e).__name__}))
        body = DbHealthResponse(connected=False, timestamp=now, error=type(e).__name__)
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))
    return DbHealthResponse(connected=True, timestamp=now)


@router.get("/monitoring/errors", response_model=RecentErrorsResponse)
def recent_errors(db: Session = Depends(get_db_session)) -> RecentErrorsResponse:
    """ERROR/CRITICAL log entries from the trailing window, newest first."""
    now = datetime.now(tz=UTC)
    window_hours = env_int("AP_ERROR_WINDOW_HOURS", 24)
    stmt = (
        select(Log)
        .where(
            Log.error_level.in_([LogLevel.ERROR, LogLevel.CRITICAL]),
            Log.created_at >= now - timedelta(hours=window_hours),
        )
        .order_by(Log.created_at.desc())
        .limit(RECENT_ERRORS_LIMIT)
    )
    rows = db.execute(stmt).scalars().all()
    errors = [
        ErrorLogEntry(id=r.id, message=r.message, error_level=r.error_level.value, created_at=r.created_at)
        for r in rows
    ]
    return RecentErrorsResponse(errors=errors, count=len(errors), timestamp=now)
