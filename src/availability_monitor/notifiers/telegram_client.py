from __future__ import annotations

"""Minimal Telegram API adapter used for monitor notifications."""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from ..errors import NotifyError

# HTTP status codes
_HTTP_OK = 200
_HTTP_TOO_MANY_REQUESTS = 429
_HTTP_SERVER_ERROR = 500


class TelegramClient:
    """Convenience wrapper around the Telegram Bot sendMessage endpoint."""

    def __init__(self, token: str, *, timeout_seconds: float, base_url: str = "https://api.telegram.org") -> None:
        self._base_url = f"{base_url.rstrip('/')}/bot{token}"
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> aiohttp.ClientTimeout:
        return self._timeout

    async def send_message(self, chat_id: str, message: str) -> Optional[str]:
        """
        Send a text message to a single chat id.

        Returns:
            The Telegram message id when the API reports one

        Raises:
            NotifyError: On any failure; ``retryable`` is set for transport
                errors, timeouts, 429 and 5xx responses
        """
        payload = {"chat_id": chat_id, "text": message, "disable_web_page_preview": True}
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(f"{self._base_url}/sendMessage", json=payload) as response:
                    if response.status == _HTTP_OK:
                        body: Dict[str, Any] = await response.json(content_type=None)
                        return _message_id(body)
                    retryable = response.status >= _HTTP_SERVER_ERROR or response.status == _HTTP_TOO_MANY_REQUESTS
                    raise NotifyError(
                        f"Telegram API returned HTTP {response.status}: {await response.text()}",
                        retryable=retryable,
                        chat_id=chat_id,
                        status=response.status,
                    )
        except asyncio.TimeoutError as exc:
            raise NotifyError("Telegram request timed out", retryable=True, chat_id=chat_id) from exc
        except aiohttp.ClientError as exc:
            raise NotifyError(f"Telegram request failed: {exc}", retryable=True, chat_id=chat_id) from exc


def _message_id(body: Dict[str, Any]) -> Optional[str]:
    result = body.get("result")
    if isinstance(result, dict) and "message_id" in result:
        return str(result["message_id"])
    return None
