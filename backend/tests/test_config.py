from __future__ import annotations

from pathlib import Path

import pytest

from app.core.env import _parse_env_line, env_int
from audit.core.config import AuditThresholds
from notify.config import NotifySettings


def test_parse_env_line():
    assert _parse_env_line("# comment") is None
    assert _parse_env_line("") is None
    assert _parse_env_line("export AP_SMTP_HOST=smtp.example.com") == ("AP_SMTP_HOST", "smtp.example.com")
    assert _parse_env_line('AP_ALERT_EMAIL="ops@example.com"') == ("AP_ALERT_EMAIL", "ops@example.com")
    assert _parse_env_line("NO_EQUALS_SIGN") is None


def test_env_int_rejects_garbage(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AP_AUDIT_MAX_ADMINS", "many")
    with pytest.raises(RuntimeError):
        env_int("AP_AUDIT_MAX_ADMINS", 5)


def test_threshold_defaults():
    t = AuditThresholds()
    assert (t.max_active_connections, t.max_table_size_mb, t.max_admins) == (50, 1000, 5)
    assert (t.stale_notification_days, t.stale_notification_count) == (30, 100)
    assert (t.stale_log_days, t.stale_log_count, t.recent_critical_log_days) == (90, 1000, 3)
    assert t.slow_query_seconds == 5


def test_thresholds_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AP_AUDIT_MAX_ADMINS", "2")
    monkeypatch.setenv("AP_AUDIT_STALE_LOG_DAYS", "30")
    t = AuditThresholds.from_env()
    assert t.max_admins == 2
    assert t.stale_log_days == 30
    assert t.max_table_size_mb == 1000


def test_notify_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("AP_SMTP_USER", "bot@example.com")
    monkeypatch.setenv("AP_ROUTINE_INTERVAL_DAYS", "7")
    monkeypatch.setenv("AP_CADENCE_BACKEND", "REDIS")
    monkeypatch.setenv("AP_CADENCE_DIR", str(tmp_path))
    s = NotifySettings.from_env()
    assert s.recipient == "bot@example.com"
    assert s.sender == "bot@example.com"
    assert s.routine_interval_days == 7
    assert s.cadence_backend == "redis"
    assert s.cadence_dir == tmp_path
    assert s.smtp_port == 587
