"""When a status observation deserves a notification."""

from ..capabilities import AvailabilityStatus


def should_alert(previous: AvailabilityStatus, new: AvailabilityStatus, *, alert_on_first_check: bool = False) -> bool:
    """
    Alert only on a transition into AVAILABLE.

    Args:
        previous: Status before this check; UNKNOWN when nothing was observed yet
        new: Status observed by this check
        alert_on_first_check: Whether an AVAILABLE first observation alerts

    Returns:
        True if a notification should be attempted
    """
    if new is not AvailabilityStatus.AVAILABLE:
        return False
    if previous is AvailabilityStatus.AVAILABLE:
        return False
    if previous is AvailabilityStatus.UNKNOWN:
        return alert_on_first_check
    return True


def is_status_change(previous: AvailabilityStatus, new: AvailabilityStatus) -> bool:
    return previous is not AvailabilityStatus.UNKNOWN and previous is not new
