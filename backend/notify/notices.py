"""Adapters from each bot's result type to the dispatcher's Notice protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from notify.render import (
    RenderedMessage,
    render_health_report,
    render_monitoring_alert,
    render_monitoring_status,
)

if TYPE_CHECKING:
    from audit.report.health_report import HealthReport
    from monitoring.core.result import MonitoringResult


@dataclass(frozen=True, slots=True)
class HealthReportNotice:
    report: "HealthReport"
    bot_name: str
    interval_days: int

    def needs_alert(self) -> bool:
        return self.report.has_issues

    def alert_message(self) -> RenderedMessage:
        return render_health_report(self.report, bot_name=self.bot_name, interval_days=self.interval_days)

    def status_message(self) -> RenderedMessage:
        return render_health_report(self.report, bot_name=self.bot_name, interval_days=self.interval_days)


@dataclass(frozen=True, slots=True)
class MonitoringNotice:
    result: "MonitoringResult"
    bot_name: str
    interval_days: int

    def needs_alert(self) -> bool:
        return self.result.has_problems

    def alert_message(self) -> RenderedMessage:
        return render_monitoring_alert(self.result, bot_name=self.bot_name)

    def status_message(self) -> RenderedMessage:
        return render_monitoring_status(self.result, bot_name=self.bot_name, interval_days=self.interval_days)
