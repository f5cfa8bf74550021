from __future__ import annotations

"""Long-running query check (server statistics; manual follow-up only)."""

from datetime import datetime

from sqlalchemy.orm import Session

from audit.core.config import AuditThresholds
from audit.core.issues import Finding
from audit.core.probes import SLOW_QUERIES, run_probe


NAME = "performance_check"


def run(db: Session, *, now: datetime, thresholds: AuditThresholds) -> list[Finding]:
    rows = run_probe(
        db,
        SLOW_QUERIES,
        check_name=NAME,
        probe_name="slow_queries",
        params={"seconds": thresholds.slow_query_seconds},
    )
    if not rows:
        return []
    return [
        Finding(
            key="slow_queries",
            description=f"Found {len(rows)} queries running longer than {thresholds.slow_query_seconds} seconds.",
            affected=len(rows),
        )
    ]
