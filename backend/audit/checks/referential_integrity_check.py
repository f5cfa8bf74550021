from __future__ import annotations

"""Referential integrity check.

Three application-managed references can dangle:
- client -> agent (User.agent_id)
- folder -> owner (Folder.user_id)
- file -> folder (File.folder_id)

Repairs are per record and committed one at a time: a client keeps a trace of
its former agent before the reference is cleared; orphaned folders and files
are deleted. A repair that stops halfway leaves fewer rows for the next run.
"""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, aliased

from app.models.file import File
from app.models.folder import Folder
from app.models.user import User, UserRole
from audit.core.config import AuditThresholds
from audit.core.issues import Finding


NAME = "referential_integrity_check"


def orphaned_client_ids(db: Session) -> list[str]:
    agent = aliased(User)
    stmt = (
        select(User.id)
        .outerjoin(agent, agent.id == User.agent_id)
        .where(User.role == UserRole.CLIENT, User.agent_id.is_not(None), agent.id.is_(None))
        .order_by(User.id)
    )
    return list(db.execute(stmt).scalars().all())


def orphaned_folder_ids(db: Session) -> list[str]:
    stmt = (
        select(Folder.id)
        .outerjoin(User, User.id == Folder.user_id)
        .where(User.id.is_(None))
        .order_by(Folder.id)
    )
    return list(db.execute(stmt).scalars().all())


def orphaned_file_ids(db: Session) -> list[str]:
    stmt = (
        select(File.id)
        .outerjoin(Folder, Folder.id == File.folder_id)
        .where(Folder.id.is_(None))
        .order_by(File.id)
    )
    return list(db.execute(stmt).scalars().all())


def run(db: Session, *, now: datetime, thresholds: AuditThresholds) -> list[Finding]:
    findings: list[Finding] = []

    clients = orphaned_client_ids(db)
    if clients:
        findings.append(
            Finding(
                key="orphaned_clients",
                description=f"Found {len(clients)} orphaned clients (their agent was deleted).",
                affected=len(clients),
                targets=tuple(clients),
            )
        )

    folders = orphaned_folder_ids(db)
    if folders:
        findings.append(
            Finding(
                key="orphaned_folders",
                description=f"Found {len(folders)} orphaned folders (no owning user).",
                affected=len(folders),
                targets=tuple(folders),
            )
        )

    files = orphaned_file_ids(db)
    if files:
        findings.append(
            Finding(
                key="orphaned_files",
                description=f"Found {len(files)} orphaned files (folder missing).",
                affected=len(files),
                targets=tuple(files),
            )
        )

    return findings


# --- Remediation -------------------------------------------------------------


def detach_orphaned_clients(db: Session, finding: Finding, *, now: datetime) -> int:
    changed = 0
    for client_id in finding.targets:
        client = db.get(User, client_id)
        if client is None or client.agent_id is None:
            continue
        if db.get(User, client.agent_id) is not None:
            continue
        client.former_agent_name = f"Agent ID: {client.agent_id}"
        client.agent_id = None
        db.commit()
        changed += 1
    return changed


def delete_orphaned_folders(db: Session, finding: Finding, *, now: datetime) -> int:
    # Files inside a removed folder would be orphaned by the fix itself; drop them with it.
    deleted = 0
    for folder_id in finding.targets:
        db.execute(delete(File).where(File.folder_id == folder_id))
        deleted += db.execute(delete(Folder).where(Folder.id == folder_id)).rowcount or 0
        db.commit()
    return deleted


def delete_orphaned_files(db: Session, finding: Finding, *, now: datetime) -> int:
    deleted = 0
    for file_id in finding.targets:
        deleted += db.execute(delete(File).where(File.id == file_id)).rowcount or 0
        db.commit()
    return deleted


def clients_detached(db: Session, finding: Finding, *, now: datetime) -> bool:
    return not set(finding.targets) & set(orphaned_client_ids(db))


def folders_removed(db: Session, finding: Finding, *, now: datetime) -> bool:
    return not set(finding.targets) & set(orphaned_folder_ids(db))


def files_removed(db: Session, finding: Finding, *, now: datetime) -> bool:
    return not set(finding.targets) & set(orphaned_file_ids(db))
