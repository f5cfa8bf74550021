"""Initial agent pro baseline (users, folders, files, notifications, logs)."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


# Revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Enums are stored as VARCHAR + CHECK (non-native) so MySQL, PostgreSQL
    # and SQLite share one schema.
    user_role = sa.Enum("ADMIN", "AGENT", "CLIENT", name="user_role", native_enum=False)
    log_level = sa.Enum("INFO", "WARNING", "ERROR", "CRITICAL", name="log_level", native_enum=False)

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("agent_id", sa.String(length=36), nullable=True),
        sa.Column("former_agent_name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_agent_id", "users", ["agent_id"])

    op.create_table(
        "folders",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_folders_user_id", "folders", ["user_id"])

    op.create_table(
        "files",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("file_name", sa.String(length=512), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("folder_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_files_folder_id", "files", ["folder_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_notifications_read_created", "notifications", ["is_read", "created_at"])

    op.create_table(
        "logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("error_level", log_level, nullable=False),
        sa.Column("stack", sa.Text(), nullable=True),
        sa.Column("component_name", sa.String(length=255), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_logs_level_created", "logs", ["error_level", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_logs_level_created", table_name="logs")
    op.drop_table("logs")
    op.drop_index("ix_notifications_read_created", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_files_folder_id", table_name="files")
    op.drop_table("files")
    op.drop_index("ix_folders_user_id", table_name="folders")
    op.drop_table("folders")
    op.drop_index("ix_users_agent_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
