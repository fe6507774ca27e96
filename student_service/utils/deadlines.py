from datetime import datetime, timedelta
from typing import Optional

DUE_SOON_WINDOW = timedelta(hours=24)


def is_due_soon(due_date: Optional[datetime], now: datetime) -> bool:
    """True when the due date lies within the next 24 hours."""
    if due_date is None:
        return False
    remaining = due_date - now
    return timedelta(0) < remaining <= DUE_SOON_WINDOW


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} remaining"


def time_remaining(due_date: Optional[datetime], now: datetime) -> Optional[str]:
    """Human label for the time left before a due date.

    Uses the largest whole unit among days, hours and minutes.
    """
    if due_date is None:
        return None

    seconds = (due_date - now).total_seconds()
    if seconds <= 0:
        return "Overdue"

    days, rest = divmod(int(seconds), 86400)
    if days > 0:
        return _plural(days, "day")
    hours, rest = divmod(rest, 3600)
    if hours > 0:
        return _plural(hours, "hour")
    return _plural(rest // 60, "minute")
