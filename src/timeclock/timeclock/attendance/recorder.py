from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import utc_now
from ..core.constants import DEBOUNCE_MINUTES
from ..core.enums import ClockMode, EventType, RejectionKind
from ..core.exceptions import StaleEventError
from ..timesheets.aggregator import TimesheetAggregator
from ..timesheets.model import Timesheet
from .locks import EmployeeLockRegistry
from .model import AttendanceEvent, EmployeeDayState, IntentDecision
from .repository import EventStore
from .state_machine import load_day_state, resolve_intent

logger = logging.getLogger(__name__)

CONCURRENT_CHANGE = "Attendance changed while processing. Please try again."

EventBuilder = Callable[[EmployeeDayState, EventType, str], AttendanceEvent]
Guard = Callable[[EmployeeDayState], Optional[IntentDecision]]


@dataclass(frozen=True)
class RecordOutcome:
    decision: IntentDecision
    day_state: EmployeeDayState
    event: Optional[AttendanceEvent] = None
    timesheet: Optional[Timesheet] = None

    @property
    def accepted(self) -> bool:
        return self.event is not None


def new_event_id() -> str:
    return uuid.uuid4().hex


class AttendanceRecorder:
    """Decide-then-write for one employee.

    Holds the employee's lock while the state is loaded, the intent resolved and the event
    appended behind the store's fence. If the fence reports a stale head, the decision is
    re-run once in explicit mode for the already resolved event type, which turns a lost race
    into the ordinary state-conflict rejection.
    """

    def __init__(
        self,
        events: EventStore,
        aggregator: TimesheetAggregator,
        *,
        locks: Optional[EmployeeLockRegistry] = None,
        debounce_minutes: int = DEBOUNCE_MINUTES,
    ):
        self._events = events
        self._aggregator = aggregator
        self._locks = locks if locks is not None else EmployeeLockRegistry()
        self._debounce = timedelta(minutes=int(debounce_minutes))

    def record(
        self,
        *,
        employee_id: str,
        company_id: str,
        mode: ClockMode,
        requested: Optional[EventType],
        build_event: EventBuilder,
        now: datetime | None = None,
        guard: Optional[Guard] = None,
    ) -> RecordOutcome:
        now = now or utc_now()
        with self._locks.hold(company_id, employee_id):
            outcome = self._decide(employee_id, company_id, mode, requested, now, guard)
            if not outcome.decision.accepted:
                return outcome

            try:
                return self._commit(outcome, build_event, now)
            except StaleEventError as exc:
                logger.warning("Fence conflict for employee %s: %s", employee_id, exc)

            retry = self._decide(employee_id, company_id, ClockMode.EXPLICIT, outcome.decision.event_type, now, guard)
            if not retry.decision.accepted:
                return retry
            try:
                return self._commit(retry, build_event, now)
            except StaleEventError as exc:
                logger.warning("Fence conflict on retry for employee %s: %s", employee_id, exc)
                return RecordOutcome(
                    decision=IntentDecision(reason=CONCURRENT_CHANGE, kind=RejectionKind.STATE_CONFLICT),
                    day_state=retry.day_state,
                )

    def _decide(
        self,
        employee_id: str,
        company_id: str,
        mode: ClockMode,
        requested: Optional[EventType],
        now: datetime,
        guard: Optional[Guard],
    ) -> RecordOutcome:
        day_state = load_day_state(self._events, employee_id, company_id)
        if guard is not None:
            rejection = guard(day_state)
            if rejection is not None:
                return RecordOutcome(decision=rejection, day_state=day_state)
        decision = resolve_intent(mode, day_state, requested, now, self._debounce)
        return RecordOutcome(decision=decision, day_state=day_state)

    def _commit(self, outcome: RecordOutcome, build_event: EventBuilder, now: datetime) -> RecordOutcome:
        day_state = outcome.day_state
        event = build_event(day_state, outcome.decision.event_type, new_event_id())
        expected = day_state.last_event.event_id if day_state.last_event else None
        self._events.insert(event, expected_last_event_id=expected)
        logger.info("Recorded %s for employee %s", event.event_type.value, event.employee_id)

        timesheet = None
        if event.event_type == EventType.CLOCK_OUT and day_state.last_clock_in is not None:
            try:
                timesheet = self._aggregator.aggregate(clock_in=day_state.last_clock_in, clock_out=event, now=now)
            except Exception:
                # The clock out is already in the log; rebuild_last_shift can redo the timesheet.
                logger.exception(
                    "Timesheet aggregation failed for employee %s (clock out %s)", event.employee_id, event.event_id
                )
        return RecordOutcome(decision=outcome.decision, day_state=day_state, event=event, timesheet=timesheet)
