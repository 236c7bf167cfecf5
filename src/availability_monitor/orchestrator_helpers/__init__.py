"""Helpers for the orchestrator: configuration, policies, summaries, results."""

from .alert_policy import is_status_change, should_alert
from .orchestrator_config import OrchestratorConfig
from .results import CheckTickResult, MaintenanceResult, StatusReport, SummaryTickResult, TickError
from .summary_builder import build_summary_stats, day_window, due_summary_date
from .summary_marker import SUMMARY_MARKER_FILENAME, SummaryMarker

__all__ = [
    "SUMMARY_MARKER_FILENAME",
    "CheckTickResult",
    "MaintenanceResult",
    "OrchestratorConfig",
    "StatusReport",
    "SummaryMarker",
    "SummaryTickResult",
    "TickError",
    "build_summary_stats",
    "day_window",
    "due_summary_date",
    "is_status_change",
    "should_alert",
]
