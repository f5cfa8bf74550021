"""E-mail rendering (Jinja2 templates under notify/templates)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

if TYPE_CHECKING:
    from audit.report.health_report import HealthReport
    from monitoring.core.result import MonitoringResult


UTC = timezone.utc
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
APP_NAME = "agent pro"

SEVERITY_COLORS = {
    "CRITICAL": "#dc3545",
    "ERROR": "#fd7e14",
    "WARNING": "#ffc107",
    "INFO": "#0dcaf0",
}
FIXED_COLOR = "#28a745"

_HEADER_COLORS = {
    "alert": "#dc2626",
    "status": "#10b981",
    "failure": "#991b1b",
}

_STATUS_MARK = {
    "HEALTHY": "✅",
    "ISSUES_FOUND": "⚠️",
    "CRITICAL": "\U0001f6a8",
}

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    subject: str
    html: str


def _render(template: str, *, kind: str, title: str, bot_name: str, now: datetime | None, **context: Any) -> str:
    when = (now or datetime.now(tz=UTC)).astimezone(UTC)
    return _env.get_template(template).render(
        title=title,
        bot_name=bot_name,
        app_name=APP_NAME,
        header_color=_HEADER_COLORS[kind],
        generated_at=when.strftime("%Y-%m-%d %H:%M UTC"),
        severity_colors=SEVERITY_COLORS,
        fixed_color=FIXED_COLOR,
        **context,
    )


def render_health_report(report: "HealthReport", *, bot_name: str, interval_days: int) -> RenderedMessage:
    status = report.status.value
    mark = _STATUS_MARK[status]
    kind = "status" if status == "HEALTHY" else "alert"
    classified = {id(i) for i in report.issues_fixed} | {id(i) for i in report.manual_action_required}
    informational = [i for i in report.issues_found if id(i) not in classified]
    html = _render(
        "health_report.html",
        kind=kind,
        title=f"{mark} Automated health scan - {APP_NAME}",
        bot_name=bot_name,
        now=report.timestamp,
        report=report,
        informational=informational,
        interval_days=interval_days,
    )
    label = "all systems healthy" if kind == "status" else f"{report.stats.issues_found} issue(s) found"
    subject = f"{mark} Health scan: {label} - {APP_NAME} - {report.timestamp.astimezone(UTC):%Y-%m-%d}"
    return RenderedMessage(subject=subject, html=html)


def render_monitoring_alert(result: "MonitoringResult", *, bot_name: str) -> RenderedMessage:
    html = _render(
        "monitoring_alert.html",
        kind="alert",
        title=f"\U0001f6a8 System alert - {APP_NAME}",
        bot_name=bot_name,
        now=result.timestamp,
        problems=result.problems(),
        recent_errors=result.errors[:5],
    )
    return RenderedMessage(subject=f"\U0001f6a8 Alert: problems detected in {APP_NAME}", html=html)


def render_monitoring_status(result: "MonitoringResult", *, bot_name: str, interval_days: int) -> RenderedMessage:
    html = _render(
        "monitoring_status.html",
        kind="status",
        title=f"✅ System status - {APP_NAME}",
        bot_name=bot_name,
        now=result.timestamp,
        result=result,
        interval_days=interval_days,
        error_window_hours=result.error_window_hours,
    )
    return RenderedMessage(subject=f"✅ Status: {APP_NAME} is healthy", html=html)


def render_critical_failure(error: BaseException, *, bot_name: str, now: datetime | None = None) -> RenderedMessage:
    html = _render(
        "critical_failure.html",
        kind="failure",
        title=f"\U0001f534 {bot_name} failed",
        bot_name=bot_name,
        now=now,
        error_type=type(error).__name__,
        error_message=str(error),
    )
    return RenderedMessage(subject=f"\U0001f534 Critical error in {bot_name}", html=html)
