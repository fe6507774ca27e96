from datetime import timedelta

import pytest

from student_service.utils.deadlines import is_due_soon, time_remaining

from tests.helpers import NOW


@pytest.mark.parametrize("offset, expected", [
    (timedelta(hours=12), True),
    (timedelta(hours=24), True),
    (timedelta(minutes=1), True),
    (timedelta(hours=30), False),
    (timedelta(hours=-1), False),
    (timedelta(0), False),
])
def test_is_due_soon(offset, expected):
    assert is_due_soon(NOW + offset, NOW) is expected


def test_is_due_soon_without_due_date():
    assert is_due_soon(None, NOW) is False


@pytest.mark.parametrize("offset, label", [
    (timedelta(days=2, hours=3), "2 days remaining"),
    (timedelta(days=1, hours=23), "1 day remaining"),
    (timedelta(hours=5, minutes=59), "5 hours remaining"),
    (timedelta(hours=1), "1 hour remaining"),
    (timedelta(minutes=30), "30 minutes remaining"),
    (timedelta(minutes=1, seconds=20), "1 minute remaining"),
    (timedelta(seconds=20), "0 minutes remaining"),
    (timedelta(0), "Overdue"),
    (timedelta(hours=-3), "Overdue"),
])
def test_time_remaining(offset, label):
    assert time_remaining(NOW + offset, NOW) == label


def test_time_remaining_without_due_date():
    assert time_remaining(None, NOW) is None
