from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ...core.enums import AttendanceState, EventType
from ..model import EmployeeDayState, IntentDecision
from .base import PLEASE_WAIT, IntentStrategy, accept, conflict


class AutoDetectStrategy(IntentStrategy):
    """Tap without an event type: toggle based on the most recent event.

    A tap within the debounce window after a clock-in is treated as an accidental double tap.
    """

    def decide(
        self,
        *,
        day_state: EmployeeDayState,
        requested: Optional[EventType],
        now: datetime,
        debounce: timedelta,
    ) -> IntentDecision:
        if day_state.state == AttendanceState.CLOCKED_OUT:
            return accept(EventType.CLOCK_IN)

        last = day_state.last_event
        if last is not None and last.event_type == EventType.CLOCK_IN and now - last.captured_at < debounce:
            return conflict(PLEASE_WAIT)

        # Clocked in (possibly on break) long enough: the tap ends the shift.
        return accept(EventType.CLOCK_OUT)
