from __future__ import annotations

import json
from datetime import timedelta

import pytest

from audit.checks.policies import policy_for
from audit.core.issues import Finding
from audit.report.health_report import finalize_report
from monitoring.core.result import BackupStatus, DbHealth, ErrorEntry, MonitoringResult, SiteHealth
from notify import dispatcher as dispatcher_mod
from notify.cadence import CadenceGate
from notify.channel import RecordingChannel, SmtpChannel
from notify.config import NotifySettings
from notify.dispatcher import DispatchKind, NotificationDispatcher
from notify.errors import NotificationDeliveryError
from notify.notices import HealthReportNotice, MonitoringNotice
from notify.render import render_critical_failure, render_health_report
from test_cadence import Clock, MemoryStore
from conftest import NOW


def _dispatcher(channel: RecordingChannel, store: MemoryStore) -> NotificationDispatcher:
    gate = CadenceGate(store, interval_days=3, clock=Clock(NOW))
    return NotificationDispatcher(
        channel, gate, recipient="ops@example.com", cadence_key="monitoring.status", bot_name="Monitoring Bot"
    )


def _healthy_report():
    return finalize_report(now=NOW, issues_found=[], issues_fixed=[], manual_action_required=[], total_checks=7)


def _critical_report():
    issue = policy_for("no_admins").to_issue(Finding(key="no_admins", description="No ADMIN users exist."))
    return finalize_report(
        now=NOW, issues_found=[issue], issues_fixed=[], manual_action_required=[issue], total_checks=7
    )


def _healthy_result() -> MonitoringResult:
    return MonitoringResult(
        timestamp=NOW,
        site_health=SiteHealth(ok=True, status=200, message="Site is healthy"),
        db_health=DbHealth(ok=True, message="Database is connected"),
        backup_status=BackupStatus(success=True, message="Backup created successfully", file_name="b.sql"),
    )


def test_healthy_run_sends_status_when_due():
    channel, store = RecordingChannel(), MemoryStore()
    outcome = _dispatcher(channel, store).dispatch(HealthReportNotice(_healthy_report(), "Auto-Healer Bot", 3))

    assert outcome.kind is DispatchKind.STATUS
    assert outcome.delivered
    assert store.value == NOW
    assert "all systems healthy" in channel.sent[0].subject


def test_healthy_run_within_interval_sends_nothing():
    channel, store = RecordingChannel(), MemoryStore(NOW - timedelta(days=1))
    outcome = _dispatcher(channel, store).dispatch(HealthReportNotice(_healthy_report(), "Auto-Healer Bot", 3))

    assert outcome.kind is DispatchKind.SUPPRESSED
    assert channel.sent == []


def test_issues_alert_without_consulting_cadence():
    channel, store = RecordingChannel(), MemoryStore(NOW - timedelta(hours=1))
    outcome = _dispatcher(channel, store).dispatch(HealthReportNotice(_critical_report(), "Auto-Healer Bot", 3))

    assert outcome.kind is DispatchKind.ALERT
    assert store.cas_calls == 0
    assert store.value == NOW - timedelta(hours=1)
    assert "No ADMIN users exist." in channel.sent[0].html


def test_monitoring_problem_alerts():
    result = _healthy_result()
    result.errors.append(ErrorEntry(id="1", message="TypeError in <Dashboard>", error_level="ERROR"))
    channel = RecordingChannel()

    outcome = _dispatcher(channel, MemoryStore()).dispatch(MonitoringNotice(result, "Monitoring Bot", 3))

    assert outcome.kind is DispatchKind.ALERT
    assert channel.sent[0].subject == "\U0001f6a8 Alert: problems detected in agent pro"
    assert "1 errors logged in the last 24 hours" in channel.sent[0].html
    # Autoescaped.
    assert "&lt;Dashboard&gt;" in channel.sent[0].html


def test_monitoring_alert_rule_follows_result_problems():
    healthy = _healthy_result()
    assert healthy.problems() == []
    assert not MonitoringNotice(healthy, "Monitoring Bot", 3).needs_alert()

    result = _healthy_result()
    result.db_health = DbHealth(ok=False, message="Database connection failed")
    result.backup_status = BackupStatus(success=False, message="Backup failed: 403")

    assert result.has_problems
    assert result.problems() == [
        "Database connection problem: Database connection failed",
        "Backup failed: Backup failed: 403",
    ]
    assert MonitoringNotice(result, "Monitoring Bot", 3).needs_alert()


def test_monitoring_healthy_status():
    channel = RecordingChannel()
    outcome = _dispatcher(channel, MemoryStore()).dispatch(MonitoringNotice(_healthy_result(), "Monitoring Bot", 3))
    assert outcome.kind is DispatchKind.STATUS
    assert channel.sent[0].subject == "✅ Status: agent pro is healthy"


def test_delivery_failure_is_logged_not_raised(monkeypatch: pytest.MonkeyPatch):
    captured: list[str] = []
    orig_warning = dispatcher_mod.logger.warning

    def _capture(msg, *args, **kwargs):
        captured.append(str(msg))
        return orig_warning(msg, *args, **kwargs)

    monkeypatch.setattr(dispatcher_mod.logger, "warning", _capture)
    channel = RecordingChannel(fail_with="smtp down")

    outcome = _dispatcher(channel, MemoryStore()).dispatch(HealthReportNotice(_critical_report(), "Auto-Healer Bot", 3))

    assert outcome.kind is DispatchKind.ALERT
    assert outcome.delivered is False
    assert outcome.error == "smtp down"
    events = [json.loads(m) for m in captured]
    assert events[0]["event"] == "notification_undelivered"
    assert events[0]["kind"] == "ALERT"


def test_critical_failure_bypasses_cadence():
    channel, store = RecordingChannel(), MemoryStore(NOW)
    outcome = _dispatcher(channel, store).dispatch_failure(RuntimeError("db gone"))

    assert outcome.kind is DispatchKind.CRITICAL_FAILURE
    assert outcome.delivered
    assert store.cas_calls == 0
    assert "db gone" in channel.sent[0].html


def test_critical_failure_delivery_error_is_swallowed():
    outcome = _dispatcher(RecordingChannel(fail_with="nope"), MemoryStore()).dispatch_failure(RuntimeError("x"))
    assert outcome.kind is DispatchKind.CRITICAL_FAILURE
    assert outcome.delivered is False


def test_health_report_email_lists_sections():
    report = _critical_report()
    msg = render_health_report(report, bot_name="Auto-Healer Bot", interval_days=3)
    assert msg.subject.startswith("\U0001f6a8 Health scan: 1 issue(s) found")
    assert "Security" in msg.html
    assert "#dc3545" in msg.html


def test_critical_failure_email():
    msg = render_critical_failure(ValueError("bad"), bot_name="Monitoring Bot", now=NOW)
    assert msg.subject == "\U0001f534 Critical error in Monitoring Bot"
    assert "ValueError" in msg.html


def test_smtp_channel_requires_recipient():
    with pytest.raises(NotificationDeliveryError):
        SmtpChannel(NotifySettings()).send("", "subject", "<p>x</p>")


def test_smtp_channel_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch):
    import smtplib

    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    with pytest.raises(NotificationDeliveryError):
        SmtpChannel(NotifySettings(smtp_host="127.0.0.1")).send("ops@example.com", "s", "<p>x</p>")
