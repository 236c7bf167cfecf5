"""Availability checkers."""

from .availability_parser import MarkerInspection, inspect_marker
from .http_checker import DEFAULT_HEADERS, HttpAvailabilityChecker

__all__ = ["DEFAULT_HEADERS", "HttpAvailabilityChecker", "MarkerInspection", "inspect_marker"]
