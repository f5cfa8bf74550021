from __future__ import annotations

import json
import logging
from typing import Optional

from notify.cadence import CadenceGate, build_cadence_store
from notify.channel import SendChannel, SmtpChannel
from notify.config import NotifySettings
from notify.dispatcher import DispatchOutcome, NotificationDispatcher, send_critical_failure


logger = logging.getLogger("agentpro.notify")


def build_dispatcher(
    *,
    bot_name: str,
    cadence_key: str,
    settings: Optional[NotifySettings] = None,
    channel: Optional[SendChannel] = None,
) -> NotificationDispatcher:
    """Wire a dispatcher from env settings (SMTP channel unless one is given)."""
    settings = settings or NotifySettings.from_env()
    gate = CadenceGate(build_cadence_store(settings), interval_days=settings.routine_interval_days)
    return NotificationDispatcher(
        channel or SmtpChannel(settings),
        gate,
        recipient=settings.recipient,
        cadence_key=cadence_key,
        bot_name=bot_name,
    )


def notify_critical_failure(
    error: BaseException,
    *,
    bot_name: str,
    settings: Optional[NotifySettings] = None,
    channel: Optional[SendChannel] = None,
) -> Optional[DispatchOutcome]:
    """Send a critical-failure notice when a bot could not even be wired.

    Needs no cadence store. Returns None when the mail settings themselves
    cannot be read.
    """
    try:
        settings = settings or NotifySettings.from_env()
    except Exception as e:  # noqa: BLE001
        logger.error(
            json.dumps(
                {"event": "critical_notification_failed", "bot": bot_name, "error_type": type(e).__name__, "error": str(e)},
                ensure_ascii=False,
            )
        )
        return None
    return send_critical_failure(channel or SmtpChannel(settings), settings.recipient, error, bot_name=bot_name)
