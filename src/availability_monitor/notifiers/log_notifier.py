"""Notifier that writes messages to the log instead of sending them."""

import logging

from ..capabilities import AlertContext, DeliveryReceipt, SummaryStats
from .message_formatter import format_alert, format_summary

logger = logging.getLogger(__name__)


class LogNotifier:
    """Dry-run notifier used when no delivery channel is configured."""

    def __init__(self, tz=None) -> None:
        self._tz = tz
        self.sent = 0

    async def send_alert(self, context: AlertContext) -> DeliveryReceipt:
        logger.warning("[dry-run alert]\n%s", format_alert(context, self._tz))
        return self._receipt()

    async def send_summary(self, stats: SummaryStats) -> DeliveryReceipt:
        logger.warning("[dry-run summary]\n%s", format_summary(stats, self._tz))
        return self._receipt()

    def _receipt(self) -> DeliveryReceipt:
        self.sent += 1
        return DeliveryReceipt(message_id=f"log-{self.sent}", delivered_to=("log",))
