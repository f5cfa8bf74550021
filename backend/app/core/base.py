"""SQLAlchemy declarative base and shared mixins.

Primary keys are application-generated string ids (the application layer
issues them), stored as plain VARCHAR so the schema is portable across the
production MySQL/PostgreSQL stores and the SQLite store used by tests.
Timestamps are timezone-aware UTC.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


UTC = timezone.utc


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class StringPrimaryKeyMixin:
    """String primary key mixin (application-generated)."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)


class CreatedAtMixin:
    """Created-at timestamp mixin (UTC).

    Set client-side so health checks comparing against `now` behave the same on
    every dialect.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
