from __future__ import annotations

"""Monitoring bot entry point (scheduled every 24 hours).

Exit code is 0 when the run reached DONE, 1 when it FAILED.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

# Ensure backend/ is importable as top-level `app`.
BASE_DIR = Path(__file__).resolve().parents[2]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from app.core.env import load_env_if_present  # noqa: E402
from monitoring.core.bot import BOT_NAME, MonitoringBot  # noqa: E402
from monitoring.core.config import MonitoringSettings  # noqa: E402
from notify.channel import RecordingChannel, SendChannel  # noqa: E402
from notify.config import NotifySettings  # noqa: E402
from notify.factory import build_dispatcher  # noqa: E402


CADENCE_KEY = "monitoring.status"

logger = logging.getLogger("agentpro.monitoring")
logger.setLevel(logging.INFO)


def build_bot(
    *,
    settings: Optional[MonitoringSettings] = None,
    notify_settings: Optional[NotifySettings] = None,
    channel: Optional[SendChannel] = None,
    notify: bool = True,
) -> MonitoringBot:
    notify_settings = notify_settings or NotifySettings.from_env()
    dispatcher = (
        build_dispatcher(bot_name=BOT_NAME, cadence_key=CADENCE_KEY, settings=notify_settings, channel=channel)
        if notify
        else None
    )
    return MonitoringBot(
        settings or MonitoringSettings.from_env(),
        dispatcher=dispatcher,
        interval_days=notify_settings.routine_interval_days,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the monitoring bot once.")
    parser.add_argument("--dry-run", action="store_true", help="Render notifications without sending them.")
    parser.add_argument("--no-notify", action="store_true", help="Skip the notification step entirely.")
    args = parser.parse_args(argv)

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    load_env_if_present()

    recorder = RecordingChannel() if args.dry_run else None
    outcome = asyncio.run(build_bot(channel=recorder, notify=not args.no_notify).run())

    logger.info(json.dumps({"event": "monitoring_completed", "success": outcome.success, **outcome.result.to_dict()}))
    if recorder is not None:
        for msg in recorder.sent:
            logger.info(json.dumps({"event": "dry_run_notification", "recipient": msg.recipient, "subject": msg.subject}))
    return 0 if outcome.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
