from datetime import datetime, timedelta, timezone

import pytest

from student_service.utils.timestamps import to_datetime

INSTANT = datetime(2024, 3, 1, 12, 30, 15, tzinfo=timezone.utc)
EPOCH_SECONDS = int(INSTANT.timestamp())


@pytest.mark.parametrize("value", [
    INSTANT,
    INSTANT.replace(tzinfo=None),
    INSTANT.astimezone(timezone(timedelta(hours=2))),
    EPOCH_SECONDS,
    float(EPOCH_SECONDS),
    EPOCH_SECONDS * 1000,
    str(EPOCH_SECONDS),
    "2024-03-01T12:30:15Z",
    "2024-03-01T12:30:15.000Z",
    "2024-03-01T12:30:15+00:00",
    "2024-03-01T14:30:15+02:00",
    "2024-03-01T12:30:15",
    {"seconds": EPOCH_SECONDS, "nanoseconds": 0},
    {"_seconds": EPOCH_SECONDS, "_nanoseconds": 0},
    {"$date": "2024-03-01T12:30:15Z"},
    {"$date": EPOCH_SECONDS * 1000},
    {"$date": {"$numberLong": str(EPOCH_SECONDS * 1000)}},
])
def test_encodings_normalize_to_the_same_instant(value):
    parsed = to_datetime(value)

    assert parsed == INSTANT
    assert parsed.tzinfo is not None
    assert parsed.utcoffset() == timedelta(0)


@pytest.mark.parametrize("value", [None, "", "   "])
def test_empty_values(value):
    assert to_datetime(value) is None


def test_firestore_nanoseconds():
    parsed = to_datetime({"seconds": EPOCH_SECONDS, "nanoseconds": 500_000_000})

    assert parsed == INSTANT + timedelta(milliseconds=500)


@pytest.mark.parametrize("value", [
    "next tuesday", {"when": 1}, True, [2024, 3, 1],
    1e22, "99999999999999999999999", float("inf"), {"seconds": None}, {"$date": 1e25},
])
def test_unsupported_values(value):
    with pytest.raises(ValueError):
        to_datetime(value)
