"""API dependencies.

Bot runners are provided as factories, not instances: building one reads the
environment, and that must happen inside the endpoint where a bad setting
becomes a `{success: false}` response. Tests swap the wiring with
`app.dependency_overrides`.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from app.core.db import SessionLocal
from audit.core.pipeline import DiagnosticPipeline
from audit.job.run_auto_healer import REPORT_PATH, build_pipeline
from monitoring.core.bot import MonitoringBot
from monitoring.job.run_monitoring import build_bot
from notify.channel import SendChannel


def get_db_session() -> Generator[Session, None, None]:
    """Provide a database session for request scope."""
    session: Session = SessionLocal()
    try:
        session.autoflush = False
        yield session
    finally:
        session.close()


def get_auto_healer_factory() -> Callable[[], DiagnosticPipeline]:
    return build_pipeline


def get_monitoring_bot_factory() -> Callable[[], MonitoringBot]:
    return build_bot


def get_failure_channel() -> Optional[SendChannel]:
    """Channel for wiring-failure notices; None means SMTP from env."""
    return None


def get_report_path() -> Optional[Path]:
    return REPORT_PATH
