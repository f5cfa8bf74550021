from __future__ import annotations

from typing import Optional

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.base import Base, CreatedAtMixin, StringPrimaryKeyMixin


class Folder(StringPrimaryKeyMixin, CreatedAtMixin, Base):
    """Document folder owned by a user (application-managed reference)."""

    __tablename__ = "folders"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    __table_args__ = (Index("ix_folders_user_id", "user_id"),)
