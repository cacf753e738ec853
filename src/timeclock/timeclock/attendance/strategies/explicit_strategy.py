from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ...core.enums import AttendanceState, EventType, RejectionKind
from ..model import EmployeeDayState, IntentDecision
from .base import (
    ALREADY_CLOCKED_IN,
    ALREADY_ON_BREAK,
    MUST_BE_CLOCKED_IN,
    NO_ACTIVE_CLOCK_IN,
    NOT_ON_BREAK,
    IntentStrategy,
    accept,
    conflict,
)


class ExplicitStrategy(IntentStrategy):
    """Requested event type is validated against the derived state, never reinterpreted."""

    def decide(
        self,
        *,
        day_state: EmployeeDayState,
        requested: Optional[EventType],
        now: datetime,
        debounce: timedelta,
    ) -> IntentDecision:
        state = day_state.state

        if requested is None:
            return IntentDecision(reason="Event type is required", kind=RejectionKind.VALIDATION)

        if requested == EventType.CLOCK_IN:
            if state == AttendanceState.CLOCKED_OUT:
                return accept(EventType.CLOCK_IN)
            return conflict(ALREADY_CLOCKED_IN)

        if requested == EventType.CLOCK_OUT:
            if state == AttendanceState.CLOCKED_OUT:
                return conflict(NO_ACTIVE_CLOCK_IN)
            return accept(EventType.CLOCK_OUT)

        if requested == EventType.BREAK_START:
            if state == AttendanceState.CLOCKED_OUT:
                return conflict(MUST_BE_CLOCKED_IN)
            if state == AttendanceState.ON_BREAK:
                return conflict(ALREADY_ON_BREAK)
            return accept(EventType.BREAK_START)

        if state != AttendanceState.ON_BREAK:
            return conflict(NOT_ON_BREAK)
        return accept(EventType.BREAK_END)
