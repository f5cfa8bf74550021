from __future__ import annotations

"""Account integrity check.

- Every user needs a contact e-mail.
- E-mail must be unique across users.
- Read notifications past retention pile up; they are pruned once their count
  crosses the configured threshold.

Missing or duplicate e-mails need a human decision (which account is real);
only the notification cleanup is automatic.
"""

from datetime import datetime, timedelta

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from app.models.notification import Notification
from app.models.user import User
from audit.core.config import AuditThresholds
from audit.core.issues import Finding
from audit.core.remediation import delete_in_batches


NAME = "account_integrity_check"


def _stale_notifications(cutoff: datetime):
    return and_(Notification.is_read.is_(True), Notification.created_at < cutoff)


def count_stale_notifications(db: Session, cutoff: datetime) -> int:
    return int(
        db.execute(select(func.count()).select_from(Notification).where(_stale_notifications(cutoff))).scalar_one()
    )


def run(db: Session, *, now: datetime, thresholds: AuditThresholds) -> list[Finding]:
    findings: list[Finding] = []

    missing_email = int(
        db.execute(
            select(func.count()).select_from(User).where(or_(User.email.is_(None), User.email == ""))
        ).scalar_one()
    )
    if missing_email > 0:
        findings.append(
            Finding(
                key="users_missing_email",
                description=f"Found {missing_email} users without an e-mail address.",
                affected=missing_email,
            )
        )

    duplicates = db.execute(
        select(User.email, func.count().label("n"))
        .where(User.email.is_not(None), User.email != "")
        .group_by(User.email)
        .having(func.count() > 1)
    ).all()
    if duplicates:
        findings.append(
            Finding(
                key="duplicate_emails",
                description=f"Found {len(duplicates)} e-mail addresses shared by more than one user.",
                affected=sum(int(n) for _, n in duplicates),
            )
        )

    cutoff = now - timedelta(days=thresholds.stale_notification_days)
    stale = count_stale_notifications(db, cutoff)
    if stale > thresholds.stale_notification_count:
        findings.append(
            Finding(
                key="stale_notifications",
                description=(
                    f"Found {stale} read notifications older than {thresholds.stale_notification_days} days."
                ),
                affected=stale,
                params={"cutoff": cutoff},
            )
        )

    return findings


def prune_stale_notifications(db: Session, finding: Finding, *, now: datetime) -> int:
    return delete_in_batches(db, Notification, _stale_notifications(finding.params["cutoff"]))


def stale_notifications_pruned(db: Session, finding: Finding, *, now: datetime) -> bool:
    return count_stale_notifications(db, finding.params["cutoff"]) == 0
