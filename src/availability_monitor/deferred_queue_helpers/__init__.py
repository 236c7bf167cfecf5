"""Deferred queue data types."""

from .types import DroppedEntry, EnqueueResult, ProcessResult, QueueEntry, QueueStatus

__all__ = ["DroppedEntry", "EnqueueResult", "ProcessResult", "QueueEntry", "QueueStatus"]
