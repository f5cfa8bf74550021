from __future__ import annotations

"""Access-control posture check.

Zero administrators locks operators out of the admin surface; too many widens
it. Both need a human decision.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.user import User, UserRole
from audit.core.config import AuditThresholds
from audit.core.issues import Finding


NAME = "access_control_check"


def run(db: Session, *, now: datetime, thresholds: AuditThresholds) -> list[Finding]:
    admins = int(
        db.execute(select(func.count()).select_from(User).where(User.role == UserRole.ADMIN)).scalar_one()
    )
    if admins == 0:
        return [Finding(key="no_admins", description="No ADMIN users exist.")]
    if admins > thresholds.max_admins:
        return [
            Finding(
                key="excess_admins",
                description=f"Too many ADMIN users: {admins} (limit {thresholds.max_admins}).",
                affected=admins,
            )
        ]
    return []
