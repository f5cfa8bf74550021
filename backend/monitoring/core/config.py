from __future__ import annotations

"""Monitoring bot settings (env only, AP_* prefix)."""

from dataclasses import dataclass

from app.core.env import env_float, env_int, env_str, load_env_if_present


@dataclass(frozen=True, slots=True)
class MonitoringSettings:
    site_url: str = "http://127.0.0.1:8000"
    http_timeout_seconds: float = 10.0
    error_window_hours: int = 24
    backup_enabled: bool = True
    gcloud_access_token: str = ""
    gcloud_project: str = ""
    db_instance: str = ""
    backup_bucket: str = ""
    backup_database: str = "agent_pro"
    sqladmin_base_url: str = "https://sqladmin.googleapis.com/v1"

    @property
    def export_url(self) -> str:
        return f"{self.sqladmin_base_url}/projects/{self.gcloud_project}/instances/{self.db_instance}/export"

    @classmethod
    def from_env(cls) -> "MonitoringSettings":
        load_env_if_present()
        d = cls()
        return cls(
            site_url=env_str("AP_SITE_URL", d.site_url).rstrip("/"),
            http_timeout_seconds=env_float("AP_HTTP_TIMEOUT_SECONDS", d.http_timeout_seconds),
            error_window_hours=env_int("AP_ERROR_WINDOW_HOURS", d.error_window_hours),
            backup_enabled=env_str("AP_BACKUP_ENABLED", "true").lower() not in ("0", "false", "no", "off"),
            gcloud_access_token=env_str("AP_GCLOUD_ACCESS_TOKEN"),
            gcloud_project=env_str("AP_GCLOUD_PROJECT"),
            db_instance=env_str("AP_DB_INSTANCE"),
            backup_bucket=env_str("AP_BACKUP_BUCKET"),
            backup_database=env_str("AP_BACKUP_DATABASE", d.backup_database),
            sqladmin_base_url=env_str("AP_SQLADMIN_BASE_URL", d.sqladmin_base_url).rstrip("/"),
        )
