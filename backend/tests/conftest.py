from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


ROOT = Path(__file__).resolve().parents[2]

# Ensure `backend/app` is importable as top-level `app` for tests.
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.core.base import Base  # noqa: E402
from app.core.db import configure_engine  # noqa: E402
import app.models as _models  # noqa: F401,E402
from app.models.file import File  # noqa: E402
from app.models.folder import Folder  # noqa: E402
from app.models.log import Log, LogLevel  # noqa: E402
from app.models.notification import Notification  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402


UTC = timezone.utc
NOW = datetime(2026, 10, 17, 10, 0, 0, tzinfo=UTC)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory SQLite store per test (one shared connection)."""
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    configure_engine(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory: Callable[[], Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    # Keep a developer's .env (SMTP credentials, bot token) out of the tests.
    for name in ("AP_BOT_TOKEN", "AP_ALERT_EMAIL", "AP_SMTP_USER", "AP_CADENCE_BACKEND"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AP_CADENCE_DIR", str(tmp_path / "cadence"))


# --- Seed helpers ------------------------------------------------------------


def add_user(
    db: Session,
    *,
    email: Optional[str] = None,
    role: UserRole = UserRole.CLIENT,
    agent_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> User:
    u = User(email=email, role=role, agent_id=agent_id)
    if user_id is not None:
        u.id = user_id
    db.add(u)
    db.commit()
    return u


def add_admin(db: Session, email: str = "admin@example.com") -> User:
    return add_user(db, email=email, role=UserRole.ADMIN)


def add_folder(db: Session, *, user_id: Optional[str], name: str = "Documents") -> Folder:
    f = Folder(name=name, user_id=user_id)
    db.add(f)
    db.commit()
    return f


def add_file(
    db: Session,
    *,
    folder_id: Optional[str],
    url: Optional[str] = "https://storage.example.com/a.pdf",
    file_name: Optional[str] = "a.pdf",
) -> File:
    f = File(folder_id=folder_id, url=url, file_name=file_name)
    db.add(f)
    db.commit()
    return f


def add_notifications(db: Session, n: int, *, is_read: bool, created_at: datetime) -> None:
    db.add_all([Notification(message="m", is_read=is_read, created_at=created_at) for _ in range(n)])
    db.commit()


def add_logs(db: Session, n: int, *, level: LogLevel, created_at: datetime) -> None:
    db.add_all([Log(message="boom", error_level=level, created_at=created_at) for _ in range(n)])
    db.commit()


def days_ago(days: float, *, now: datetime = NOW) -> datetime:
    return now - timedelta(days=days)
