from __future__ import annotations

from typing import Optional

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.base import Base, CreatedAtMixin, StringPrimaryKeyMixin


class File(StringPrimaryKeyMixin, CreatedAtMixin, Base):
    """Uploaded file metadata.

    `url` and `file_name` are required by the application but nullable at the
    storage level; empty or missing values are repaired by the health pipeline.
    """

    __tablename__ = "files"

    file_name: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    folder_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    __table_args__ = (Index("ix_files_folder_id", "folder_id"),)
