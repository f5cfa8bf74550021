"""Monitoring bot run (uptime, DB reachability, recent errors, backup).

Probes are awaited one after another; each carries the client's fixed
timeout. The run has the same shape as the auto-healer pipeline: results are
collected, then handed to the dispatcher; anything escaping the probes' own
containment marks the run FAILED and takes the critical-failure path.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx

from audit.core.pipeline import PipelineState
from monitoring.core.backup import trigger_backup
from monitoring.core.config import MonitoringSettings
from monitoring.core.probes import check_db_health, check_site_health, fetch_recent_errors
from monitoring.core.result import MonitoringResult
from notify.dispatcher import DispatchKind, DispatchOutcome, NotificationDispatcher
from notify.notices import MonitoringNotice


UTC = timezone.utc
BOT_NAME = "Monitoring Bot"

logger = logging.getLogger("agentpro.monitoring")

ClientFactory = Callable[[MonitoringSettings], httpx.AsyncClient]

_ALERT_LINES = {
    DispatchKind.ALERT: "Alert email sent due to issues detected",
    DispatchKind.STATUS: "Routine status email sent",
}


def _log(event: dict) -> None:
    logger.info(json.dumps(event, ensure_ascii=False, default=str))


def default_client(settings: MonitoringSettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True)


@dataclass(slots=True)
class MonitoringOutcome:
    state: PipelineState
    result: MonitoringResult
    error: Optional[BaseException] = None
    dispatch: Optional[DispatchOutcome] = None

    @property
    def success(self) -> bool:
        return self.state is PipelineState.DONE


class MonitoringBot:
    def __init__(
        self,
        settings: MonitoringSettings,
        *,
        dispatcher: Optional[NotificationDispatcher] = None,
        client_factory: ClientFactory = default_client,
        interval_days: int = 3,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings
        self._dispatcher = dispatcher
        self._client_factory = client_factory
        self._interval_days = interval_days
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self.state = PipelineState.INIT

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        _log({"event": "monitoring_state", "state": state.value})

    async def _probe(self, result: MonitoringResult) -> None:
        s = self._settings
        async with self._client_factory(s) as client:
            result.site_health = await check_site_health(client, s.site_url)
            result.db_health = await check_db_health(client, s.site_url)
            result.errors = await fetch_recent_errors(client, s.site_url)
            result.backup_status = await trigger_backup(client, s, now=result.timestamp)
        _log(
            {
                "event": "monitoring_probed",
                "site_ok": result.site_health.ok,
                "db_ok": result.db_health.ok,
                "errors": len(result.errors),
                "backup_ok": result.backup_status.success,
            }
        )

    async def run(self) -> MonitoringOutcome:
        result = MonitoringResult(timestamp=self._clock(), error_window_hours=self._settings.error_window_hours)
        try:
            self._enter(PipelineState.RUNNING)
            await self._probe(result)

            self._enter(PipelineState.NOTIFYING)
            dispatch = None
            if self._dispatcher is not None:
                notice = MonitoringNotice(result, bot_name=BOT_NAME, interval_days=self._interval_days)
                # SMTP delivery blocks; keep it off the event loop.
                dispatch = await asyncio.to_thread(self._dispatcher.dispatch, notice)
                line = _ALERT_LINES.get(dispatch.kind)
                if line:
                    result.alerts.append(line if dispatch.delivered else f"{line} (delivery failed)")

            self._enter(PipelineState.DONE)
            return MonitoringOutcome(state=PipelineState.DONE, result=result, dispatch=dispatch)
        except Exception as ex:  # noqa: BLE001
            self._enter(PipelineState.FAILED)
            logger.error(json.dumps({"event": "monitoring_failed", "error_type": type(ex).__name__, "error": str(ex)}))
            dispatch = None
            if self._dispatcher is not None:
                dispatch = await asyncio.to_thread(self._dispatcher.dispatch_failure, ex)
            return MonitoringOutcome(state=PipelineState.FAILED, result=result, error=ex, dispatch=dispatch)
