from __future__ import annotations

"""Notification settings (env only, AP_* prefix)."""

from dataclasses import dataclass
from pathlib import Path

from app.core.env import env_int, env_str, load_env_if_present


DEFAULT_CADENCE_DIR = Path(__file__).resolve().parents[1] / "state" / "cadence"


@dataclass(frozen=True, slots=True)
class NotifySettings:
    recipient: str = ""
    sender: str = ""
    sender_name: str = "Agent Pro Monitoring"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_timeout_seconds: int = 30
    routine_interval_days: int = 3
    cadence_backend: str = "file"
    cadence_dir: Path = DEFAULT_CADENCE_DIR
    redis_url: str = "redis://127.0.0.1:6379/0"

    @classmethod
    def from_env(cls) -> "NotifySettings":
        load_env_if_present()
        d = cls()
        smtp_user = env_str("AP_SMTP_USER")
        return cls(
            recipient=env_str("AP_ALERT_EMAIL") or smtp_user,
            sender=env_str("AP_MAIL_FROM") or smtp_user,
            sender_name=env_str("AP_MAIL_FROM_NAME", d.sender_name),
            smtp_host=env_str("AP_SMTP_HOST", d.smtp_host),
            smtp_port=env_int("AP_SMTP_PORT", d.smtp_port),
            smtp_user=smtp_user,
            smtp_password=env_str("AP_SMTP_PASSWORD"),
            smtp_timeout_seconds=env_int("AP_SMTP_TIMEOUT_SECONDS", d.smtp_timeout_seconds),
            routine_interval_days=env_int("AP_ROUTINE_INTERVAL_DAYS", d.routine_interval_days),
            cadence_backend=env_str("AP_CADENCE_BACKEND", d.cadence_backend).lower(),
            cadence_dir=Path(env_str("AP_CADENCE_DIR") or d.cadence_dir),
            redis_url=env_str("REDIS_URL", d.redis_url),
        )
