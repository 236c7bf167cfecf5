"""HTTP availability checker."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Mapping, Optional

import aiohttp

from ..capabilities import AvailabilityStatus, CheckResult
from ..errors import NetworkError, OperationTimeoutError, ValidationError
from .availability_parser import inspect_marker

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0

# HTTP status codes
_HTTP_TOO_MANY_REQUESTS = 429
_HTTP_SERVER_ERROR = 500

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Cache-Control": "no-cache",
}


class HttpAvailabilityChecker:
    """Fetches a product page and looks for an enabled purchase control."""

    def __init__(
        self,
        marker_id: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        headers: Optional[Mapping[str, str]] = None,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.marker_id = marker_id
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._headers = dict(headers or DEFAULT_HEADERS)
        self._session = session
        self._clock = clock

    async def check(self, target: str) -> CheckResult:
        """
        Fetch ``target`` and classify availability.

        Raises:
            NetworkError: Connection failures, 5xx and 429 responses
            OperationTimeoutError: The request exceeded its timeout
            ValidationError: Other non-success responses
        """
        try:
            if self._session is not None:
                body = await self._fetch(self._session, target)
            else:
                async with aiohttp.ClientSession(timeout=self._timeout, headers=self._headers) as session:
                    body = await self._fetch(session, target)
        except asyncio.TimeoutError as exc:
            raise OperationTimeoutError(f"Timed out fetching {target}", url=target) from exc
        except aiohttp.ClientError as exc:
            raise NetworkError(f"Network error fetching {target}: {exc}", url=target) from exc

        inspection = inspect_marker(body, self.marker_id)
        status = AvailabilityStatus.AVAILABLE if inspection.available else AvailabilityStatus.UNAVAILABLE
        logger.debug("Checked %s: %s (%s)", target, status.value, inspection.reason)
        return CheckResult(
            status=status,
            timestamp=self._clock(),
            detail=inspection.reason,
            metadata={"marker_found": inspection.found, "content_length": len(body)},
        )

    async def _fetch(self, session: aiohttp.ClientSession, target: str) -> str:
        async with session.get(target, timeout=self._timeout, headers=self._headers) as response:
            if response.status >= _HTTP_SERVER_ERROR or response.status == _HTTP_TOO_MANY_REQUESTS:
                raise NetworkError(f"HTTP {response.status} from {target}", url=target, status=response.status)
            if response.status >= 400:
                raise ValidationError(f"HTTP {response.status} from {target}", url=target, status=response.status)
            return await response.text()
