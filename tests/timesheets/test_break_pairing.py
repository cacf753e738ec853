from datetime import datetime, timedelta

import pytest

from src.timeclock.timeclock.attendance.model import AttendanceEvent
from src.timeclock.timeclock.core.enums import EventType
from src.timeclock.timeclock.timesheets.calculator.standard_calculator import (
    StandardTimesheetCalculator,
    pair_breaks,
)

T0 = datetime(2026, 2, 2, 9, 0, 0)


def ev(event_type: EventType, minutes: float, event_id: str) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=event_id,
        employee_id="emp-1",
        company_id="co-1",
        event_type=event_type,
        captured_at=T0 + timedelta(minutes=minutes),
        location_lat=0.0,
        location_lng=0.0,
        accuracy_meters=5.0,
    )


def _ids(pairs):
    return [(start.event_id, end.event_id) for start, end in pairs]


def test_pairs_consecutive_start_end():
    events = [
        ev(EventType.BREAK_START, 60, "s1"),
        ev(EventType.BREAK_END, 75, "e1"),
        ev(EventType.BREAK_START, 180, "s2"),
        ev(EventType.BREAK_END, 210, "e2"),
    ]
    assert _ids(pair_breaks(events)) == [("s1", "e1"), ("s2", "e2")]


def test_repeated_start_replaces_open_start():
    events = [ev(EventType.BREAK_START, 60, "s1"), ev(EventType.BREAK_START, 90, "s2"), ev(EventType.BREAK_END, 100, "e1")]
    assert _ids(pair_breaks(events)) == [("s2", "e1")]


def test_orphan_end_and_trailing_start_are_ignored():
    events = [ev(EventType.BREAK_END, 30, "e0"), ev(EventType.BREAK_START, 60, "s1")]
    assert pair_breaks(events) == []


def test_calculator_does_not_subtract_breaks_from_hours():
    figures = StandardTimesheetCalculator().compute(
        clock_in=ev(EventType.CLOCK_IN, 0, "in"),
        clock_out=ev(EventType.CLOCK_OUT, 480, "out"),
        break_events=[ev(EventType.BREAK_END, 210, "e1"), ev(EventType.BREAK_START, 180, "s1")],
    )
    assert figures.hours_worked == pytest.approx(8.0)
    assert figures.break_minutes == 30


def test_break_minutes_are_rounded():
    figures = StandardTimesheetCalculator().compute(
        clock_in=ev(EventType.CLOCK_IN, 0, "in"),
        clock_out=ev(EventType.CLOCK_OUT, 60, "out"),
        break_events=[ev(EventType.BREAK_START, 10, "s1"), ev(EventType.BREAK_END, 20.7, "e1")],
    )
    assert figures.break_minutes == 11
