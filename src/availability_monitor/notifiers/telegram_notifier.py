"""Notifier delivering alerts and summaries through Telegram."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..capabilities import AlertContext, DeliveryReceipt, SummaryStats
from ..errors import NotifyError, ValidationError
from .message_formatter import format_alert, format_summary
from .telegram_client import TelegramClient

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """
    Sends each message to every configured chat.

    Delivery succeeds when at least one chat received the message; failed
    chats are logged. When every chat fails the first error is raised with
    ``retryable`` set if any failure was transient.
    """

    def __init__(self, client: TelegramClient, chat_ids: Sequence[str], *, tz=None) -> None:
        if not chat_ids:
            raise ValidationError("TelegramNotifier requires at least one chat id")
        self.client = client
        self.chat_ids = tuple(chat_ids)
        self._tz = tz

    async def send_alert(self, context: AlertContext) -> DeliveryReceipt:
        return await self._broadcast(format_alert(context, self._tz), "alert")

    async def send_summary(self, stats: SummaryStats) -> DeliveryReceipt:
        return await self._broadcast(format_summary(stats, self._tz), "summary")

    async def _broadcast(self, message: str, label: str) -> DeliveryReceipt:
        delivered: List[str] = []
        errors: List[NotifyError] = []
        message_id: Optional[str] = None

        for chat_id in self.chat_ids:
            try:
                sent_id = await self.client.send_message(chat_id, message)
            except NotifyError as exc:
                logger.warning("Telegram %s to %s failed: %s", label, chat_id, exc)
                errors.append(exc)
                continue
            delivered.append(chat_id)
            message_id = message_id or sent_id

        if not delivered:
            first = errors[0]
            raise NotifyError(
                f"Telegram {label} not delivered to any of {len(self.chat_ids)} chats: {first}",
                retryable=any(error.retryable for error in errors),
                failed_chats=len(errors),
            ) from first

        logger.info("Telegram %s delivered to %s/%s chats", label, len(delivered), len(self.chat_ids))
        return DeliveryReceipt(message_id=message_id, delivered_to=tuple(delivered))
