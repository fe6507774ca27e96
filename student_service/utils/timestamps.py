"""
Timestamp normalization.

Documents written by different clients carry timestamps in several
encodings (native datetimes, epoch seconds or milliseconds, ISO strings,
Firestore ``{"seconds", "nanoseconds"}`` maps and MongoDB extended JSON
``{"$date": ...}``). Everything is converted to an aware UTC ``datetime``
before it is compared or sorted.
"""
import re
from datetime import datetime, timezone
from typing import Any, Optional

# Epoch values above this are milliseconds (year 5138 in seconds)
MILLIS_THRESHOLD = 10 ** 11

NUMERIC = re.compile(r"-?\d+(\.\d+)?")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _from_epoch(value: float) -> datetime:
    if abs(value) >= MILLIS_THRESHOLD:
        value = value / 1000.0
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _from_iso(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def to_datetime(value: Any) -> Optional[datetime]:
    """Convert any supported timestamp encoding to an aware UTC datetime.

    ``None`` and empty strings give ``None``. Anything unrecognised or out of
    range raises ``ValueError``.
    """
    try:
        return _convert(value)
    except (OverflowError, OSError, TypeError) as e:
        raise ValueError(f"Unsupported timestamp: {value!r} ({e})") from e


def _convert(value: Any) -> Optional[datetime]:
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        raise ValueError(f"Unsupported timestamp: {value!r}")
    elif isinstance(value, (int, float)):
        parsed = _from_epoch(float(value))
    elif isinstance(value, str):
        if not value.strip():
            return None
        if NUMERIC.fullmatch(value.strip()):
            parsed = _from_epoch(float(value))
        else:
            parsed = _from_iso(value)
    elif isinstance(value, dict):
        if "$date" in value:
            inner = value["$date"]
            if isinstance(inner, dict) and "$numberLong" in inner:
                return _from_epoch(int(inner["$numberLong"]) / 1000.0)
            if isinstance(inner, (int, float)) and not isinstance(inner, bool):
                return _from_epoch(inner / 1000.0)
            return _convert(inner)
        if "seconds" in value or "_seconds" in value:
            seconds = value.get("seconds", value.get("_seconds"))
            nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
            return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)
        raise ValueError(f"Unsupported timestamp: {value!r}")
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
