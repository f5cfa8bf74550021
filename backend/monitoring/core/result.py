"""Monitoring bot result types.

Parallel to the auto-healer's HealthReport, but about uptime and backups
rather than data integrity.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


UTC = timezone.utc


@dataclass(frozen=True, slots=True)
class SiteHealth:
    ok: bool
    status: int
    message: str


@dataclass(frozen=True, slots=True)
class DbHealth:
    ok: bool
    message: str


@dataclass(frozen=True, slots=True)
class BackupStatus:
    success: bool
    message: str
    file_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ErrorEntry:
    id: str
    message: str
    error_level: str
    created_at: Optional[str] = None


NOT_CHECKED_SITE = SiteHealth(ok=False, status=0, message="Not checked")
NOT_CHECKED_DB = DbHealth(ok=False, message="Not checked")
NOT_ATTEMPTED_BACKUP = BackupStatus(success=False, message="Backup not attempted")


@dataclass(slots=True)
class MonitoringResult:
    timestamp: datetime
    site_health: SiteHealth = NOT_CHECKED_SITE
    db_health: DbHealth = NOT_CHECKED_DB
    errors: list[ErrorEntry] = field(default_factory=list)
    backup_status: BackupStatus = NOT_ATTEMPTED_BACKUP
    alerts: list[str] = field(default_factory=list)
    error_window_hours: int = 24

    def problems(self) -> list[str]:
        """One line per thing worth alerting on; empty when all is well."""
        found: list[str] = []
        if not self.site_health.ok:
            found.append(f"Site is not responding: {self.site_health.message}")
        if not self.db_health.ok:
            found.append(f"Database connection problem: {self.db_health.message}")
        if not self.backup_status.success:
            found.append(f"Backup failed: {self.backup_status.message}")
        if self.errors:
            found.append(f"{len(self.errors)} errors logged in the last {self.error_window_hours} hours")
        return found

    @property
    def has_problems(self) -> bool:
        return bool(self.problems())

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.astimezone(UTC).isoformat(),
            "site_health": asdict(self.site_health),
            "db_health": asdict(self.db_health),
            "errors": [asdict(e) for e in self.errors],
            "backup_status": asdict(self.backup_status),
            "alerts": list(self.alerts),
        }
