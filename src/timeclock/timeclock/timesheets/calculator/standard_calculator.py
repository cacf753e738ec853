from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ...attendance.model import AttendanceEvent
from ...common.datetime_utils import hours_between, minutes_between
from ...core.enums import EventType
from ..model import WorkFigures
from .base import TimesheetCalculator


def pair_breaks(events: Iterable[AttendanceEvent]) -> list[tuple[AttendanceEvent, AttendanceEvent]]:
    """Pair break events in ascending order with a one-slot fold.

    A BREAK_END closes the open BREAK_START. A second BREAK_START replaces the open one.
    A BREAK_END with nothing open is ignored and a trailing open start is dropped.
    """
    pairs: list[tuple[AttendanceEvent, AttendanceEvent]] = []
    open_start: Optional[AttendanceEvent] = None
    for event in events:
        if event.event_type == EventType.BREAK_START:
            open_start = event
        elif event.event_type == EventType.BREAK_END and open_start is not None:
            pairs.append((open_start, event))
            open_start = None
    return pairs


class StandardTimesheetCalculator(TimesheetCalculator):
    """Standard rule: hours = out - in (breaks are not subtracted); break minutes rounded."""

    def compute(
        self,
        *,
        clock_in: AttendanceEvent,
        clock_out: AttendanceEvent,
        break_events: Sequence[AttendanceEvent],
    ) -> WorkFigures:
        hours = hours_between(clock_in.captured_at, clock_out.captured_at)
        ordered = sorted(break_events, key=lambda e: e.captured_at)
        minutes = sum(minutes_between(start.captured_at, end.captured_at) for start, end in pair_breaks(ordered))
        return WorkFigures(hours_worked=hours, break_minutes=int(round(minutes)))
