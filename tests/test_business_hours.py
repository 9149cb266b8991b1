"""Tests for business-hours mode selection."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from chat.business_hours import BusinessHours, select_mode
from chat.processor import ProcessingMode

BANGKOK = ZoneInfo("Asia/Bangkok")


def at(hour, minute=0):
    return datetime(2024, 5, 1, hour, minute, tzinfo=BANGKOK)


def test_label():
    assert BusinessHours().label == "10:00-22:00"


def test_open_during_hours():
    hours = BusinessHours()
    assert hours.is_open(at(10, 0))
    assert hours.is_open(at(21, 59))


def test_closed_outside_hours():
    hours = BusinessHours()
    assert not hours.is_open(at(9, 59))
    assert not hours.is_open(at(22, 0))


def test_other_timezones_are_converted():
    # 03:30 UTC is 10:30 in Bangkok
    now = datetime(2024, 5, 1, 3, 30, tzinfo=timezone.utc)
    assert BusinessHours().is_open(now)


def test_select_mode():
    hours = BusinessHours()
    assert select_mode(hours, at(12)) == ProcessingMode.STAFF
    assert select_mode(hours, at(23)) == ProcessingMode.ASSISTANT
