"""Application log model.

Rows are written by the application's client-side error logger and API
routes. The monitoring bot reads recent ERROR/CRITICAL rows; the auto-healer
escalates recent CRITICAL volume and prunes rows past retention.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.sqltypes import Enum as SAEnum

from app.core.base import Base, CreatedAtMixin, StringPrimaryKeyMixin


class LogLevel(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Log(StringPrimaryKeyMixin, CreatedAtMixin, Base):
    __tablename__ = "logs"

    message: Mapped[str] = mapped_column(Text, nullable=False)
    error_level: Mapped[LogLevel] = mapped_column(
        SAEnum(LogLevel, name="log_level", native_enum=False),
        nullable=False,
        default=LogLevel.INFO,
    )
    stack: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    component_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("ix_logs_level_created", "error_level", "created_at"),)
