from __future__ import annotations

"""File record integrity check.

- Files missing a required field (url / file_name, null or empty) are unusable
  and are deleted.
- Several files sharing one storage URL are reported for information only.
"""

from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from app.models.file import File
from audit.core.config import AuditThresholds
from audit.core.issues import Finding


NAME = "resource_integrity_check"


def invalid_file_ids(db: Session) -> list[str]:
    stmt = (
        select(File.id)
        .where(
            or_(
                File.url.is_(None),
                File.url == "",
                File.file_name.is_(None),
                File.file_name == "",
            )
        )
        .order_by(File.id)
    )
    return list(db.execute(stmt).scalars().all())


def run(db: Session, *, now: datetime, thresholds: AuditThresholds) -> list[Finding]:
    findings: list[Finding] = []

    duplicate_urls = db.execute(
        select(File.url, func.count().label("n"))
        .where(File.url.is_not(None), File.url != "")
        .group_by(File.url)
        .having(func.count() > 1)
    ).all()
    if duplicate_urls:
        findings.append(
            Finding(
                key="duplicate_file_urls",
                description=f"Found {len(duplicate_urls)} file URLs shared by more than one file record.",
                affected=sum(int(n) for _, n in duplicate_urls),
            )
        )

    invalid = invalid_file_ids(db)
    if invalid:
        findings.append(
            Finding(
                key="invalid_files",
                description=f"Found {len(invalid)} files with missing url or file name.",
                affected=len(invalid),
                targets=tuple(invalid),
            )
        )

    return findings


def delete_invalid_files(db: Session, finding: Finding, *, now: datetime) -> int:
    deleted = 0
    for file_id in finding.targets:
        deleted += db.execute(delete(File).where(File.id == file_id)).rowcount or 0
        db.commit()
    return deleted


def invalid_files_removed(db: Session, finding: Finding, *, now: datetime) -> bool:
    return not set(finding.targets) & set(invalid_file_ids(db))
