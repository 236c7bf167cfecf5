"""Notification adapters."""

from .log_notifier import LogNotifier
from .message_formatter import format_alert, format_summary
from .telegram_client import TelegramClient
from .telegram_notifier import TelegramNotifier

__all__ = ["LogNotifier", "TelegramClient", "TelegramNotifier", "format_alert", "format_summary"]
