from __future__ import annotations

"""Controlled notification errors.

Delivery failures are logged and never change a run's outcome; they get their
own type so log searches can find reports that never reached an operator.
"""


class NotificationError(RuntimeError):
    """Base error for rendering, cadence and delivery."""


class NotificationDeliveryError(NotificationError):
    """Raised when the send channel rejects or cannot deliver a message."""


class CadenceStoreError(NotificationError):
    """Raised when the cadence store cannot be read or written."""
