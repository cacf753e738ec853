"""Attendance state machine.

`derive_state` folds an ordered event sequence into CLOCKED_OUT / CLOCKED_IN / ON_BREAK and
`resolve_intent` decides which event a request produces. Both are pure; `load_day_state`
reads the minimal tail of the log needed to derive the current state.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..core.constants import DEBOUNCE_MINUTES
from ..core.enums import AttendanceState, ClockMode, EventType
from .factory import IntentStrategyFactory
from .model import AttendanceEvent, EmployeeDayState, IntentDecision
from .repository import EventStore

_factory = IntentStrategyFactory()


def derive_state(events: Iterable[AttendanceEvent]) -> EmployeeDayState:
    state = AttendanceState.CLOCKED_OUT
    since: Optional[datetime] = None
    last: Optional[AttendanceEvent] = None
    clock_in: Optional[AttendanceEvent] = None
    open_break: Optional[AttendanceEvent] = None

    for event in events:
        last = event
        if event.event_type == EventType.CLOCK_IN:
            state, clock_in, open_break = AttendanceState.CLOCKED_IN, event, None
        elif event.event_type == EventType.CLOCK_OUT:
            state, clock_in, open_break = AttendanceState.CLOCKED_OUT, None, None
        elif clock_in is None:
            # Break events outside a shift do not change state.
            continue
        elif event.event_type == EventType.BREAK_START:
            state, open_break = AttendanceState.ON_BREAK, event
        elif open_break is not None:
            state, open_break = AttendanceState.CLOCKED_IN, None
        else:
            continue
        since = event.captured_at

    return EmployeeDayState(
        state=state,
        since=since,
        last_event=last,
        last_clock_in=clock_in,
        active_break_start=open_break,
    )


def resolve_intent(
    mode: ClockMode,
    day_state: EmployeeDayState,
    requested: Optional[EventType],
    now: datetime,
    debounce: timedelta = timedelta(minutes=DEBOUNCE_MINUTES),
) -> IntentDecision:
    strategy = _factory.for_mode(mode)
    return strategy.decide(day_state=day_state, requested=requested, now=now, debounce=debounce)


def load_day_state(events: EventStore, employee_id: str, company_id: str) -> EmployeeDayState:
    last = events.find_most_recent(employee_id, company_id)
    if last is None:
        return derive_state([])

    last_clock_in = events.find_most_recent_by_type(employee_id, company_id, [EventType.CLOCK_IN])
    if last_clock_in is None:
        return derive_state([last])

    return derive_state(events.find_since(employee_id, company_id, event_id=last_clock_in.event_id))
