"""Database backup trigger (Cloud SQL Admin export).

One authenticated POST per run. Only the immediate response is consumed; the
export operation itself is not polled.
"""

from __future__ import annotations

from datetime import datetime, timezone

import httpx

from monitoring.core.config import MonitoringSettings
from monitoring.core.result import BackupStatus


UTC = timezone.utc


def backup_file_name(now: datetime) -> str:
    ts = now.astimezone(UTC)
    stamp = ts.strftime("%Y-%m-%dT%H:%M:%S") + f".{ts.microsecond // 1000:03d}Z"
    return f"backup-{stamp.replace(':', '-')}.sql"


def export_payload(settings: MonitoringSettings, file_name: str) -> dict:
    return {
        "exportContext": {
            "fileType": "SQL",
            "uri": f"gs://{settings.backup_bucket}/{file_name}",
            "databases": [settings.backup_database],
        }
    }


async def trigger_backup(client: httpx.AsyncClient, settings: MonitoringSettings, *, now: datetime) -> BackupStatus:
    if not settings.backup_enabled:
        return BackupStatus(success=True, message="Backup disabled by configuration")
    if not settings.gcloud_access_token:
        return BackupStatus(success=False, message="Backup failed: AP_GCLOUD_ACCESS_TOKEN is not set")

    file_name = backup_file_name(now)
    try:
        response = await client.post(
            settings.export_url,
            headers={"Authorization": f"Bearer {settings.gcloud_access_token}"},
            json=export_payload(settings, file_name),
        )
    except httpx.HTTPError as e:
        return BackupStatus(success=False, message=f"Backup error: {type(e).__name__}: {e}")

    if response.is_success:
        return BackupStatus(success=True, file_name=file_name, message="Backup created successfully")
    return BackupStatus(success=False, message=f"Backup failed: {response.status_code} {response.reason_phrase}")
