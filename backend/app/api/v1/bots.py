"""Bot trigger endpoints (called by the scheduler).

Both endpoints ignore the request body. A run that reaches DONE answers 200
with its report; a FAILED run answers 500 after its critical-failure notice
has been attempted. A bot that cannot be built from its settings counts as a
failed run.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_auto_healer_factory, get_failure_channel, get_monitoring_bot_factory, get_report_path
from app.schemas.bots import AutoHealerResponse, BotFailureResponse, MonitoringResponse
from app.security.auth import require_scheduler_token
from audit.core.pipeline import BOT_NAME as AUTO_HEALER_NAME
from audit.core.pipeline import DiagnosticPipeline
from audit.job.run_auto_healer import run_auto_healer
from audit.report.health_report import build_report
from monitoring.core.bot import BOT_NAME as MONITORING_NAME
from monitoring.core.bot import MonitoringBot
from notify.channel import SendChannel
from notify.factory import notify_critical_failure


logger = logging.getLogger("agentpro")

router = APIRouter(dependencies=[Depends(require_scheduler_token)])


def _error_text(error: Optional[BaseException]) -> str:
    return str(error) if error is not None else "Unknown error"


def _failure(event: str, error: Optional[BaseException], results: Optional[dict] = None) -> JSONResponse:
    logger.error(json.dumps({"event": event, "error": _error_text(error)}, ensure_ascii=False))
    return JSONResponse(
        status_code=500,
        content=BotFailureResponse(error=_error_text(error), results=results).model_dump(exclude_none=True),
    )


def _wiring_failed(event: str, error: Exception, *, bot_name: str, channel: Optional[SendChannel]) -> JSONResponse:
    logger.error(
        json.dumps(
            {"event": "bot_wiring_failed", "bot": bot_name, "error_type": type(error).__name__, "error": str(error)},
            ensure_ascii=False,
        )
    )
    notify_critical_failure(error, bot_name=bot_name, channel=channel)
    return _failure(event, error)


@router.post(
    "/auto-healer",
    response_model=AutoHealerResponse,
    responses={500: {"model": BotFailureResponse}},
)
async def trigger_auto_healer(
    factory: Callable[[], DiagnosticPipeline] = Depends(get_auto_healer_factory),
    report_path: Optional[Path] = Depends(get_report_path),
    failure_channel: Optional[SendChannel] = Depends(get_failure_channel),
):
    try:
        pipeline = factory()
    except Exception as e:  # noqa: BLE001
        return await run_in_threadpool(
            _wiring_failed, "auto_healer_endpoint_failed", e, bot_name=AUTO_HEALER_NAME, channel=failure_channel
        )

    # The pipeline is synchronous (one DB session, SMTP); keep it off the event loop.
    outcome = await run_in_threadpool(run_auto_healer, pipeline, report_path=report_path)
    if not outcome.success or outcome.report is None:
        return _failure("auto_healer_endpoint_failed", outcome.error)
    return AutoHealerResponse(
        report=build_report(outcome.report),
        notification=outcome.dispatch.to_dict() if outcome.dispatch is not None else None,
    )


@router.post(
    "/monitoring",
    response_model=MonitoringResponse,
    responses={500: {"model": BotFailureResponse}},
)
async def trigger_monitoring(
    factory: Callable[[], MonitoringBot] = Depends(get_monitoring_bot_factory),
    failure_channel: Optional[SendChannel] = Depends(get_failure_channel),
):
    try:
        bot = factory()
    except Exception as e:  # noqa: BLE001
        return await run_in_threadpool(
            _wiring_failed, "monitoring_endpoint_failed", e, bot_name=MONITORING_NAME, channel=failure_channel
        )

    outcome = await bot.run()
    results = outcome.result.to_dict()
    if not outcome.success:
        return _failure("monitoring_endpoint_failed", outcome.error, results)
    return MonitoringResponse(
        results=results,
        notification=outcome.dispatch.to_dict() if outcome.dispatch is not None else None,
    )
