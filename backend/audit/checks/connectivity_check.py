from __future__ import annotations

"""Store connectivity check.

- Store reachable at all (SELECT 1).
- Connection pool saturation.
- Oversized tables.

Nothing here is auto-fixable; every finding goes to an operator.
"""

import json
import logging
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.orm import Session

from audit.core.config import AuditThresholds
from audit.core.errors import ProbeUnavailable
from audit.core.issues import Finding
from audit.core.probes import ACTIVE_CONNECTIONS, TABLE_SIZES_MB, run_probe


NAME = "connectivity_check"

logger = logging.getLogger("agentpro.audit")


def _skip(probe: str, ex: ProbeUnavailable) -> None:
    logger.info(json.dumps({"event": "audit_probe_skipped", "check": NAME, "probe": probe, "reason": str(ex)}))


def run(db: Session, *, now: datetime, thresholds: AuditThresholds) -> list[Finding]:
    try:
        db.execute(text("select 1")).scalar_one()
    except Exception as ex:  # noqa: BLE001
        db.rollback()
        return [
            Finding(
                key="store_unreachable",
                description=f"Database connection failed ({type(ex).__name__}).",
            )
        ]

    findings: list[Finding] = []

    try:
        rows = run_probe(db, ACTIVE_CONNECTIONS, check_name=NAME, probe_name="active_connections")
        active = int(rows[0][0]) if rows else 0
        if active > thresholds.max_active_connections:
            findings.append(
                Finding(
                    key="connection_pool_saturated",
                    description=f"Too many active connections: {active} (limit {thresholds.max_active_connections}).",
                    affected=active,
                )
            )
    except ProbeUnavailable as ex:
        _skip("active_connections", ex)

    try:
        for table_name, size_mb in run_probe(db, TABLE_SIZES_MB, check_name=NAME, probe_name="table_sizes"):
            size = float(size_mb or 0)
            if size > thresholds.max_table_size_mb:
                findings.append(
                    Finding(
                        key="oversized_table",
                        description=f"Table {table_name} is too large: {size:.2f}MB.",
                        location=f"Table: {table_name}",
                        affected=1,
                    )
                )
    except ProbeUnavailable as ex:
        _skip("table_sizes", ex)

    return findings
