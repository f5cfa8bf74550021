"""Notification dispatcher.

Decision precedence (first match wins):
1. the run itself failed -> critical-failure message (cadence bypassed);
2. the subject has something to alert on -> alert (cadence not consulted);
3. the cadence gate says a routine notice is due -> status message;
4. otherwise -> nothing is sent.

Delivery failures never change the run's outcome. They are logged as
`notification_undelivered` and reported back in the DispatchOutcome.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from notify.cadence import CadenceGate
from notify.channel import SendChannel
from notify.errors import NotificationDeliveryError
from notify.render import RenderedMessage, render_critical_failure


logger = logging.getLogger("agentpro.notify")


def _log(event: dict) -> None:
    logger.info(json.dumps(event, ensure_ascii=False, default=str))


class Notice(Protocol):
    """What a bot hands the dispatcher: an alert test plus two renderings."""

    def needs_alert(self) -> bool: ...

    def alert_message(self) -> RenderedMessage: ...

    def status_message(self) -> RenderedMessage: ...


class DispatchKind(str, Enum):
    CRITICAL_FAILURE = "CRITICAL_FAILURE"
    ALERT = "ALERT"
    STATUS = "STATUS"
    SUPPRESSED = "SUPPRESSED"


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    kind: DispatchKind
    delivered: bool = False
    subject: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "delivered": self.delivered, "subject": self.subject, "error": self.error}


class NotificationDispatcher:
    def __init__(
        self,
        channel: SendChannel,
        gate: CadenceGate,
        *,
        recipient: str,
        cadence_key: str,
        bot_name: str,
    ) -> None:
        self._channel = channel
        self._gate = gate
        self._recipient = recipient
        self._cadence_key = cadence_key
        self.bot_name = bot_name

    def _deliver(self, kind: DispatchKind, message: RenderedMessage) -> DispatchOutcome:
        try:
            self._channel.send(self._recipient, message.subject, message.html)
        except NotificationDeliveryError as e:
            logger.warning(
                json.dumps(
                    {
                        "event": "notification_undelivered",
                        "bot": self.bot_name,
                        "kind": kind.value,
                        "subject": message.subject,
                        "error": str(e),
                    },
                    ensure_ascii=False,
                )
            )
            return DispatchOutcome(kind=kind, delivered=False, subject=message.subject, error=str(e))
        _log({"event": "notification_sent", "bot": self.bot_name, "kind": kind.value, "subject": message.subject})
        return DispatchOutcome(kind=kind, delivered=True, subject=message.subject)

    def dispatch(self, notice: Notice) -> DispatchOutcome:
        if notice.needs_alert():
            return self._deliver(DispatchKind.ALERT, notice.alert_message())
        if self._gate.is_routine_notice_due(self._cadence_key):
            return self._deliver(DispatchKind.STATUS, notice.status_message())
        _log({"event": "notification_suppressed", "bot": self.bot_name, "reason": "routine_notice_not_due"})
        return DispatchOutcome(kind=DispatchKind.SUPPRESSED)

    def dispatch_failure(self, error: BaseException) -> DispatchOutcome:
        return send_critical_failure(self._channel, self._recipient, error, bot_name=self.bot_name)


def send_critical_failure(
    channel: SendChannel, recipient: str, error: BaseException, *, bot_name: str
) -> DispatchOutcome:
    """Best effort: nothing raised here may mask the original failure."""
    try:
        message = render_critical_failure(error, bot_name=bot_name)
        channel.send(recipient, message.subject, message.html)
    except Exception as e:  # noqa: BLE001
        logger.error(
            json.dumps(
                {
                    "event": "critical_notification_failed",
                    "bot": bot_name,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
                ensure_ascii=False,
            )
        )
        return DispatchOutcome(kind=DispatchKind.CRITICAL_FAILURE, delivered=False, error=str(e))
    _log({"event": "notification_sent", "bot": bot_name, "kind": DispatchKind.CRITICAL_FAILURE.value})
    return DispatchOutcome(kind=DispatchKind.CRITICAL_FAILURE, delivered=True, subject=message.subject)
