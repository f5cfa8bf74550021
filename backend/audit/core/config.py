from __future__ import annotations

"""Auto-healer thresholds.

Conservative defaults; override via env (AP_AUDIT_*) when the deployment
needs tighter or looser limits.
"""

from dataclasses import dataclass

from app.core.env import env_int, load_env_if_present


@dataclass(frozen=True, slots=True)
class AuditThresholds:
    max_active_connections: int = 50
    max_table_size_mb: int = 1000
    stale_notification_days: int = 30
    stale_notification_count: int = 100
    recent_critical_log_days: int = 3
    stale_log_days: int = 90
    stale_log_count: int = 1000
    slow_query_seconds: int = 5
    max_admins: int = 5

    @classmethod
    def from_env(cls) -> "AuditThresholds":
        load_env_if_present()
        d = cls()
        return cls(
            max_active_connections=env_int("AP_AUDIT_MAX_ACTIVE_CONNECTIONS", d.max_active_connections),
            max_table_size_mb=env_int("AP_AUDIT_MAX_TABLE_SIZE_MB", d.max_table_size_mb),
            stale_notification_days=env_int("AP_AUDIT_STALE_NOTIFICATION_DAYS", d.stale_notification_days),
            stale_notification_count=env_int("AP_AUDIT_STALE_NOTIFICATION_COUNT", d.stale_notification_count),
            recent_critical_log_days=env_int("AP_AUDIT_RECENT_CRITICAL_LOG_DAYS", d.recent_critical_log_days),
            stale_log_days=env_int("AP_AUDIT_STALE_LOG_DAYS", d.stale_log_days),
            stale_log_count=env_int("AP_AUDIT_STALE_LOG_COUNT", d.stale_log_count),
            slow_query_seconds=env_int("AP_AUDIT_SLOW_QUERY_SECONDS", d.slow_query_seconds),
            max_admins=env_int("AP_AUDIT_MAX_ADMINS", d.max_admins),
        )
