from __future__ import annotations

"""Audit-log hygiene check.

- Any CRITICAL log in the recent window is escalated as-is.
- Logs past retention are pruned once their count crosses the threshold.
"""

from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.log import Log, LogLevel
from audit.core.config import AuditThresholds
from audit.core.issues import Finding
from audit.core.remediation import delete_in_batches


NAME = "log_hygiene_check"


def count_logs_before(db: Session, cutoff: datetime) -> int:
    return int(db.execute(select(func.count()).select_from(Log).where(Log.created_at < cutoff)).scalar_one())


def run(db: Session, *, now: datetime, thresholds: AuditThresholds) -> list[Finding]:
    findings: list[Finding] = []

    window_start = now - timedelta(days=thresholds.recent_critical_log_days)
    critical = int(
        db.execute(
            select(func.count())
            .select_from(Log)
            .where(Log.error_level == LogLevel.CRITICAL, Log.created_at >= window_start)
        ).scalar_one()
    )
    if critical > 0:
        findings.append(
            Finding(
                key="recent_critical_logs",
                description=(
                    f"Found {critical} CRITICAL log entries in the last {thresholds.recent_critical_log_days} days."
                ),
                affected=critical,
            )
        )

    cutoff = now - timedelta(days=thresholds.stale_log_days)
    stale = count_logs_before(db, cutoff)
    if stale > thresholds.stale_log_count:
        findings.append(
            Finding(
                key="stale_logs",
                description=f"Found {stale} log entries older than {thresholds.stale_log_days} days.",
                affected=stale,
                params={"cutoff": cutoff},
            )
        )

    return findings


def prune_stale_logs(db: Session, finding: Finding, *, now: datetime) -> int:
    return delete_in_batches(db, Log, Log.created_at < finding.params["cutoff"])


def stale_logs_pruned(db: Session, finding: Finding, *, now: datetime) -> bool:
    return count_logs_before(db, finding.params["cutoff"]) == 0
