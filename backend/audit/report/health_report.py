from __future__ import annotations

"""Health report aggregation (auto-healer).

`aggregate` is pure: status and stats derive from the issue lists only.
`build_report` renders the JSON payload returned to the scheduler and written
to health_report.json.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from audit.core.issues import Issue, ReportStatus, Severity


UTC = timezone.utc


@dataclass(frozen=True, slots=True)
class ReportStats:
    total_checks: int
    issues_found: int
    issues_fixed: int
    manual_required: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total_checks": self.total_checks,
            "issues_found": self.issues_found,
            "issues_fixed": self.issues_fixed,
            "manual_required": self.manual_required,
        }


@dataclass(frozen=True, slots=True)
class CheckErrorRecord:
    check: str
    error_type: str
    message: str


@dataclass(slots=True)
class HealthReport:
    timestamp: datetime
    status: ReportStatus
    issues_found: list[Issue]
    issues_fixed: list[Issue]
    manual_action_required: list[Issue]
    stats: ReportStats
    check_errors: list[CheckErrorRecord] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues_found)


def status_for(issues: Iterable[Issue]) -> ReportStatus:
    worst: Severity | None = None
    for issue in issues:
        if worst is None or issue.severity.rank > worst.rank:
            worst = issue.severity
    if worst is None:
        return ReportStatus.HEALTHY
    if worst is Severity.CRITICAL:
        return ReportStatus.CRITICAL
    return ReportStatus.ISSUES_FOUND


def aggregate(
    issues_found: list[Issue],
    issues_fixed: list[Issue],
    manual_action_required: list[Issue],
    *,
    total_checks: int,
) -> tuple[ReportStatus, ReportStats]:
    stats = ReportStats(
        total_checks=total_checks,
        issues_found=len(issues_found),
        issues_fixed=len(issues_fixed),
        manual_required=len(manual_action_required),
    )
    return status_for(issues_found), stats


def finalize_report(
    *,
    now: datetime,
    issues_found: list[Issue],
    issues_fixed: list[Issue],
    manual_action_required: list[Issue],
    total_checks: int,
    check_errors: list[CheckErrorRecord] | None = None,
) -> HealthReport:
    """Aggregate and freeze every issue; the report is read-only afterwards."""
    status, stats = aggregate(issues_found, issues_fixed, manual_action_required, total_checks=total_checks)
    for issue in issues_found:
        issue.finalize()
    return HealthReport(
        timestamp=now,
        status=status,
        issues_found=list(issues_found),
        issues_fixed=list(issues_fixed),
        manual_action_required=list(manual_action_required),
        stats=stats,
        check_errors=list(check_errors or []),
    )


def build_report(report: HealthReport) -> dict[str, Any]:
    return {
        "timestamp": report.timestamp.astimezone(UTC).isoformat(),
        "status": report.status.value,
        "issues_found": [i.to_dict() for i in report.issues_found],
        "issues_fixed": [i.to_dict() for i in report.issues_fixed],
        "manual_action_required": [i.to_dict() for i in report.manual_action_required],
        "stats": report.stats.to_dict(),
        "check_errors": [
            {"check": e.check, "error_type": e.error_type, "message": e.message} for e in report.check_errors
        ],
    }


def write_report(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
