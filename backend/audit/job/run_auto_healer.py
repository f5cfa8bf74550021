from __future__ import annotations

"""Auto-healer entry point (scheduled every few days).

- Scans the store, repairs what is safe to repair.
- Writes health_report.json next to the report module.
- Sends an alert, a routine status notice, or nothing.

Exit code is 0 when the pipeline reached DONE, 1 when it FAILED.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

# Ensure backend/ is importable as top-level `app`.
BASE_DIR = Path(__file__).resolve().parents[2]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from app.core.db import SessionLocal  # noqa: E402
from app.core.env import load_env_if_present  # noqa: E402
import app.models as _models  # noqa: F401,E402
from audit.core.config import AuditThresholds  # noqa: E402
from audit.core.pipeline import BOT_NAME, DiagnosticPipeline, PipelineOutcome, SessionFactory  # noqa: E402
from audit.report.health_report import build_report, write_report  # noqa: E402
from notify.channel import RecordingChannel, SendChannel  # noqa: E402
from notify.config import NotifySettings  # noqa: E402
from notify.factory import build_dispatcher  # noqa: E402


CADENCE_KEY = "auto_healer.status"
REPORT_PATH = Path(__file__).resolve().parents[1] / "report" / "health_report.json"

logger = logging.getLogger("agentpro.audit")
logger.setLevel(logging.INFO)


def _log(event: dict) -> None:
    logger.info(json.dumps(event, ensure_ascii=False))


def build_pipeline(
    *,
    session_factory: SessionFactory = SessionLocal,
    settings: Optional[NotifySettings] = None,
    channel: Optional[SendChannel] = None,
    thresholds: Optional[AuditThresholds] = None,
    notify: bool = True,
) -> DiagnosticPipeline:
    settings = settings or NotifySettings.from_env()
    dispatcher = (
        build_dispatcher(bot_name=BOT_NAME, cadence_key=CADENCE_KEY, settings=settings, channel=channel)
        if notify
        else None
    )
    return DiagnosticPipeline(
        session_factory,
        dispatcher=dispatcher,
        thresholds=thresholds or AuditThresholds.from_env(),
        interval_days=settings.routine_interval_days,
    )


def run_auto_healer(pipeline: DiagnosticPipeline, *, report_path: Optional[Path] = REPORT_PATH) -> PipelineOutcome:
    outcome = pipeline.run()
    if outcome.report is not None and report_path is not None:
        try:
            write_report(report_path, build_report(outcome.report))
            _log({"event": "audit_report_written", "path": str(report_path)})
        except OSError as ex:
            _log({"event": "audit_report_write_failed", "path": str(report_path), "error": str(ex)})
    return outcome


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the auto-healer health scan once.")
    parser.add_argument("--dry-run", action="store_true", help="Render notifications without sending them.")
    parser.add_argument("--no-notify", action="store_true", help="Skip the notification step entirely.")
    parser.add_argument("--report", type=Path, default=REPORT_PATH, help="Where to write health_report.json.")
    args = parser.parse_args(argv)

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    load_env_if_present()

    recorder = RecordingChannel() if args.dry_run else None
    pipeline = build_pipeline(channel=recorder, notify=not args.no_notify)
    outcome = run_auto_healer(pipeline, report_path=args.report)

    if recorder is not None:
        for msg in recorder.sent:
            _log({"event": "dry_run_notification", "recipient": msg.recipient, "subject": msg.subject})
    return 0 if outcome.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
