"""
Error classification for retry and reporting decisions.

This module provides canonical mapping of arbitrary exceptions onto
``ErrorKind`` values and the retryable/fatal split. All modules should
import from here rather than implementing their own detection.
"""

import asyncio
import socket

import aiohttp

from .errors import ErrorKind, MonitorError

NETWORK_ERROR_TYPES = (
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    socket.gaierror,
    ConnectionError,
    OSError,
)

TIMEOUT_ERROR_TYPES = (
    asyncio.TimeoutError,
    TimeoutError,
    aiohttp.ServerTimeoutError,
)

VALIDATION_ERROR_TYPES = (ValueError, TypeError, KeyError)

_RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT})


def classify_error(exception: BaseException) -> ErrorKind:
    """
    Map an exception onto an ``ErrorKind``.

    Args:
        exception: Exception to classify

    Returns:
        The error kind; unknown exceptions are APPLICATION
    """
    if isinstance(exception, MonitorError):
        return exception.kind
    # ServerTimeoutError is also a ClientConnectionError, so timeouts go first
    if isinstance(exception, TIMEOUT_ERROR_TYPES):
        return ErrorKind.TIMEOUT
    if isinstance(exception, NETWORK_ERROR_TYPES):
        return ErrorKind.NETWORK
    if isinstance(exception, VALIDATION_ERROR_TYPES):
        return ErrorKind.VALIDATION
    return ErrorKind.APPLICATION


def is_retryable(exception: BaseException) -> bool:
    """
    Determine whether an operation that raised *exception* may be retried.

    Args:
        exception: Exception to check

    Returns:
        True for transient network/timeout failures and retryable monitor errors
    """
    if isinstance(exception, MonitorError):
        return exception.retryable
    return classify_error(exception) in _RETRYABLE_KINDS


__all__ = [
    "NETWORK_ERROR_TYPES",
    "TIMEOUT_ERROR_TYPES",
    "VALIDATION_ERROR_TYPES",
    "classify_error",
    "is_retryable",
]
