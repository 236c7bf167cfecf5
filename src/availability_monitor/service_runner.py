from __future__ import annotations

"""Utilities for running the long-lived monitor with consistent shutdown handling."""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Callable, Coroutine, Optional

from .config import ConfigurationError
from .errors import MonitorError
from .logging_config import setup_logging

ServiceFactory = Callable[[asyncio.Event], Coroutine[Any, Any, None]]

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _install_signal_handlers(stop_event: asyncio.Event, logger: logging.Logger) -> None:
    loop = asyncio.get_running_loop()

    def _request_stop(signame: str) -> None:
        if stop_event.is_set():
            logger.warning("%s received again; shutdown already in progress", signame)
            return
        logger.info("%s received; shutting down", signame)
        stop_event.set()

    for sig in _STOP_SIGNALS:
        try:
            loop.add_signal_handler(sig, _request_stop, sig.name)
        except (NotImplementedError, RuntimeError):  # Windows or non-main thread
            logger.debug("Cannot install handler for %s; relying on KeyboardInterrupt", sig.name)


async def _serve(factory: ServiceFactory, logger: logging.Logger) -> None:
    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event, logger)
    await factory(stop_event)


def run_async_service(
    factory: ServiceFactory,
    *,
    service_name: str,
    log_dir: Optional[Path] = None,
    configure_logging: bool = True,
    shutdown_message: Optional[str] = None,
) -> None:
    """Run an async service until SIGINT/SIGTERM.

    Args:
        factory: Callable receiving the stop event and returning the coroutine to execute.
        service_name: Identifier used for logging configuration.
        log_dir: Directory for the service log file.
        configure_logging: Whether to configure logging via ``setup_logging``.
        shutdown_message: Optional custom message when interrupted.

    Raises:
        SystemExit: With status 1 when the service cannot start or fails unrecoverably.
    """

    if configure_logging:
        setup_logging(service_name, log_dir=log_dir)
    logger = logging.getLogger(f"availability_monitor.{service_name}")

    try:
        asyncio.run(_serve(factory, logger))
    except KeyboardInterrupt:
        if shutdown_message:
            logger.info(shutdown_message)
        else:
            logger.info("%s service interrupted by user", service_name)
    except (ConfigurationError, MonitorError) as exc:
        logger.critical("%s failed: %s", service_name, exc)
        sys.stderr.write(f"{service_name}: {exc}\n")
        raise SystemExit(1) from exc


__all__ = ["ServiceFactory", "run_async_service"]
