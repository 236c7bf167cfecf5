"""
Centralized logging configuration for the monitor.

This module provides a single setup_logging function that configures
logging consistently for every entry point with:
- Console output (quiet in user-friendly mode)
- File output to <log_dir>/{service_name}.log
- A watched file handler, so archives renamed by LogLifecycleManager are
  followed by a fresh file instead of writing into the archive
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional

from .config import env_bool

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_configured_for: Optional[str] = None

TECHNICAL_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("asyncio", "aiohttp", "aiohttp.access", "aiohttp.client", "urllib3")


def _build_console_handler(user_friendly: bool, verbose: bool) -> logging.Handler:
    if user_friendly:
        formatter = logging.Formatter("%(message)s")
    else:
        formatter = logging.Formatter(TECHNICAL_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    if user_friendly:
        console_handler.setLevel(logging.WARNING)
    elif verbose:
        console_handler.setLevel(logging.DEBUG)
    else:
        console_handler.setLevel(logging.INFO)
    return console_handler


def _build_file_handler(service_name: str, log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.WatchedFileHandler(log_dir / f"{service_name}.log", mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(TECHNICAL_FORMAT, DATE_FORMAT))
    file_handler.setLevel(logging.INFO)
    return file_handler


def _reset_root_handlers(root_logger: logging.Logger) -> None:
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        try:
            handler.close()
        except OSError as exc:  # Best-effort cleanup operation
            logging.getLogger(__name__).debug("Handler close failed: %s", exc)


def _suppress_noisy_third_parties() -> None:
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(
    service_name: Optional[str] = None,
    *,
    log_dir: Optional[Path] = None,
    user_friendly: bool = False,
    force: bool = False,
) -> None:
    """Configure logging for the application.

    Args:
        service_name: Name of the log file; no file handler when omitted.
        log_dir: Directory for the log file (defaults to ``./logs``).
        user_friendly: Plain messages, warnings and above only, on the console.
        force: Reconfigure even if this service was already configured.
    """

    global _configured_for

    with _config_lock:
        key = f"{service_name}:{log_dir}:{user_friendly}"
        if _configured_for == key and not force:
            return

        root_logger = logging.getLogger()
        _reset_root_handlers(root_logger)

        verbose = bool(env_bool("MONITOR_VERBOSE", or_value=False))
        root_logger.addHandler(_build_console_handler(user_friendly, verbose))
        if service_name:
            root_logger.addHandler(_build_file_handler(service_name, log_dir or Path("logs")))

        root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
        _suppress_noisy_third_parties()
        _configured_for = key


__all__ = ["setup_logging"]
