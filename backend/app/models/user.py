"""User model.

One table holds every account kind. Clients reference the agent that onboarded
them through `agent_id`; the reference is application-managed (no database
foreign key), so it can dangle when an agent is removed. The health pipeline
detects and repairs that case, keeping the former agent in `former_agent_name`.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.sqltypes import Enum as SAEnum

from app.core.base import Base, CreatedAtMixin, StringPrimaryKeyMixin


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    AGENT = "AGENT"
    CLIENT = "CLIENT"


class User(StringPrimaryKeyMixin, CreatedAtMixin, Base):
    __tablename__ = "users"

    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.CLIENT,
    )

    agent_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    former_agent_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_users_email", "email"),
        Index("ix_users_agent_id", "agent_id"),
    )
