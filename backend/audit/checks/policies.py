"""Finding policy table.

One row per finding key: how severe it is, which subsystem it belongs to,
whether it may be fixed automatically, and if so how. Adding a check means
adding rows here, not new branches in the pipeline.

`escalate=False` marks informational findings that stay in `issues_found`
without entering the manual-action list. CRITICAL findings are always
escalated regardless of this flag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from audit.checks import (
    account_integrity_check,
    log_hygiene_check,
    referential_integrity_check,
    resource_integrity_check,
)
from audit.core.issues import Finding, Issue, Severity
from audit.core.remediation import Remediation


@dataclass(frozen=True, slots=True)
class FindingPolicy:
    key: str
    severity: Severity
    category: str
    location: str
    remediation: Optional[Remediation] = None
    escalate: bool = True

    @property
    def auto_fixable(self) -> bool:
        return self.remediation is not None

    def to_issue(self, finding: Finding) -> Issue:
        return Issue(
            key=self.key,
            severity=self.severity,
            category=self.category,
            description=finding.description,
            location=finding.location or self.location,
            auto_fixable=self.auto_fixable,
            affected=finding.affected,
        )


_POLICIES: tuple[FindingPolicy, ...] = (
    # Connectivity
    FindingPolicy("store_unreachable", Severity.CRITICAL, "Database", "Database Connection"),
    FindingPolicy("connection_pool_saturated", Severity.WARNING, "Database", "Database Connection Pool"),
    FindingPolicy("oversized_table", Severity.WARNING, "Database", "Database Tables"),
    # Referential integrity
    FindingPolicy(
        "orphaned_clients",
        Severity.WARNING,
        "Data Integrity",
        "User table",
        remediation=Remediation(
            description="clear dangling agent reference (former agent recorded)",
            apply=referential_integrity_check.detach_orphaned_clients,
            verify=referential_integrity_check.clients_detached,
        ),
    ),
    FindingPolicy(
        "orphaned_folders",
        Severity.WARNING,
        "Data Integrity",
        "Folder table",
        remediation=Remediation(
            description="delete orphaned folders",
            apply=referential_integrity_check.delete_orphaned_folders,
            verify=referential_integrity_check.folders_removed,
        ),
    ),
    FindingPolicy(
        "orphaned_files",
        Severity.WARNING,
        "Data Integrity",
        "File table",
        remediation=Remediation(
            description="delete orphaned files",
            apply=referential_integrity_check.delete_orphaned_files,
            verify=referential_integrity_check.files_removed,
        ),
    ),
    # Resource integrity
    FindingPolicy(
        "invalid_files",
        Severity.WARNING,
        "File System",
        "File table",
        remediation=Remediation(
            description="delete file records missing url or file name",
            apply=resource_integrity_check.delete_invalid_files,
            verify=resource_integrity_check.invalid_files_removed,
        ),
    ),
    FindingPolicy("duplicate_file_urls", Severity.INFO, "File System", "File table", escalate=False),
    # Accounts
    FindingPolicy("users_missing_email", Severity.CRITICAL, "User Management", "User table"),
    FindingPolicy("duplicate_emails", Severity.CRITICAL, "User Management", "User table"),
    FindingPolicy(
        "stale_notifications",
        Severity.INFO,
        "Data Cleanup",
        "Notification table",
        remediation=Remediation(
            description="delete read notifications past retention",
            apply=account_integrity_check.prune_stale_notifications,
            verify=account_integrity_check.stale_notifications_pruned,
        ),
    ),
    # Logs
    FindingPolicy("recent_critical_logs", Severity.CRITICAL, "System Logs", "Log table"),
    FindingPolicy(
        "stale_logs",
        Severity.INFO,
        "Data Cleanup",
        "Log table",
        remediation=Remediation(
            description="delete logs past retention",
            apply=log_hygiene_check.prune_stale_logs,
            verify=log_hygiene_check.stale_logs_pruned,
        ),
    ),
    # Performance
    FindingPolicy("slow_queries", Severity.WARNING, "Performance", "Database"),
    # Security
    FindingPolicy("no_admins", Severity.CRITICAL, "Security", "User table"),
    FindingPolicy("excess_admins", Severity.WARNING, "Security", "User table"),
)

POLICIES: Mapping[str, FindingPolicy] = {p.key: p for p in _POLICIES}


def policy_for(key: str) -> FindingPolicy:
    try:
        return POLICIES[key]
    except KeyError:
        raise LookupError(f"No finding policy registered for {key!r}.") from None
