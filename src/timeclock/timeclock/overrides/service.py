from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from ..attendance.model import AttendanceEvent, EmployeeDayState, IntentDecision
from ..attendance.recorder import AttendanceRecorder
from ..attendance.repository import EventStore
from ..attendance.strategies.base import NOT_ON_BREAK, conflict
from ..common.datetime_utils import utc_now
from ..core.enums import AttendanceState, ClockMode, EventType, RejectionKind
from ..employees.model import Actor, EmployeeProfile
from ..employees.repository import EmployeeRepository

logger = logging.getLogger(__name__)

UNAUTHORIZED = "Unauthorized"
NO_COMPANY = "No company associated with your account."
NOT_IN_COMPANY = "Employee not found or does not belong to your company."
NOT_ACTIVE = "Employee is not active."
BREAK_ALREADY_ENDED = "Break has already been ended."
ALREADY_CLOCKED_OUT = "Employee is already clocked out."
NOT_CLOCKED_IN = "Employee is not currently clocked in."


@dataclass(frozen=True)
class OverrideResult:
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    kind: Optional[RejectionKind] = None
    event: Optional[AttendanceEvent] = None

    @classmethod
    def ok(cls, message: str, event: Optional[AttendanceEvent] = None) -> "OverrideResult":
        return cls(success=True, message=message, event=event)

    @classmethod
    def fail(cls, error: str, kind: RejectionKind) -> "OverrideResult":
        return cls(success=False, error=error, kind=kind)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "message": self.message}
        return {"success": False, "error": self.error}


class ManualOverrideGate:
    """Employer/admin actions on an employee's attendance: break, end break, clock out.

    Each action re-validates the employee's state through the same state machine as taps,
    reuses a location from the employee's own history, and never raises to the caller.
    """

    def __init__(self, events: EventStore, employees: EmployeeRepository, recorder: AttendanceRecorder):
        self._events = events
        self._employees = employees
        self._recorder = recorder

    def _scope(self, actor: Actor, employee_id: str) -> Union[EmployeeProfile, OverrideResult]:
        if not actor.is_manager:
            return OverrideResult.fail(UNAUTHORIZED, RejectionKind.UNAUTHORIZED)
        if not actor.company_id:
            return OverrideResult.fail(NO_COMPANY, RejectionKind.VALIDATION)

        employee = self._employees.get_by_id(employee_id)
        if not employee or employee.company_id != actor.company_id:
            return OverrideResult.fail(NOT_IN_COMPANY, RejectionKind.NOT_FOUND)
        return employee

    @staticmethod
    def _note(notes: Optional[str], default: str) -> str:
        if isinstance(notes, str) and notes.strip():
            return notes.strip()
        return default

    @staticmethod
    def _copy_location(
        source: Optional[AttendanceEvent],
        *,
        event_id: str,
        employee: EmployeeProfile,
        event_type: EventType,
        now: datetime,
        notes: str,
    ) -> AttendanceEvent:
        if source is None:
            raise ValueError(f"No source event to take the location from for {event_type.value}")
        return AttendanceEvent(
            event_id=event_id,
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            event_type=event_type,
            captured_at=now,
            location_lat=source.location_lat,
            location_lng=source.location_lng,
            accuracy_meters=source.accuracy_meters,
            address=source.address,
            notes=notes,
        )

    def _run(
        self,
        *,
        employee: EmployeeProfile,
        event_type: EventType,
        location_from,
        notes: str,
        now: datetime,
        guard=None,
    ):
        def build_event(day_state: EmployeeDayState, resolved: EventType, event_id: str) -> AttendanceEvent:
            return self._copy_location(
                location_from(day_state),
                event_id=event_id,
                employee=employee,
                event_type=resolved,
                now=now,
                notes=notes,
            )

        return self._recorder.record(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            mode=ClockMode.EXPLICIT,
            requested=event_type,
            build_event=build_event,
            now=now,
            guard=guard,
        )

    def put_on_break(
        self,
        actor: Actor,
        *,
        employee_id: str,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> OverrideResult:
        scoped = self._scope(actor, employee_id)
        if isinstance(scoped, OverrideResult):
            return scoped
        if not scoped.is_active:
            return OverrideResult.fail(NOT_ACTIVE, RejectionKind.VALIDATION)

        try:
            outcome = self._run(
                employee=scoped,
                event_type=EventType.BREAK_START,
                location_from=lambda day: day.last_clock_in,
                notes=self._note(notes, f"Break started by {actor.name or actor.email}"),
                now=now or utc_now(),
            )
        except Exception:
            logger.exception("Error putting employee %s on break", employee_id)
            return OverrideResult.fail("Failed to put employee on break.", RejectionKind.VALIDATION)

        if not outcome.accepted:
            return OverrideResult.fail(outcome.decision.reason, outcome.decision.kind)
        return OverrideResult.ok("Employee put on break successfully.", outcome.event)

    def end_break(
        self,
        actor: Actor,
        *,
        employee_id: str,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> OverrideResult:
        scoped = self._scope(actor, employee_id)
        if isinstance(scoped, OverrideResult):
            return scoped
        now = now or utc_now()

        def guard(day_state: EmployeeDayState) -> Optional[IntentDecision]:
            latest_start = self._events.find_most_recent_by_type(
                scoped.employee_id, scoped.company_id, [EventType.BREAK_START]
            )
            if latest_start is None:
                return conflict(NOT_ON_BREAK)
            ended = self._events.find_since(
                scoped.employee_id,
                scoped.company_id,
                event_id=latest_start.event_id,
                event_types=[EventType.BREAK_END],
            )
            if ended:
                return conflict(BREAK_ALREADY_ENDED)
            return None

        try:
            outcome = self._run(
                employee=scoped,
                event_type=EventType.BREAK_END,
                location_from=lambda day: day.active_break_start,
                notes=self._note(notes, f"Break ended by {actor.name or actor.email}"),
                now=now,
                guard=guard,
            )
        except Exception:
            logger.exception("Error ending break for employee %s", employee_id)
            return OverrideResult.fail("Failed to end employee break.", RejectionKind.VALIDATION)

        if not outcome.accepted:
            return OverrideResult.fail(outcome.decision.reason, outcome.decision.kind)
        return OverrideResult.ok("Employee break ended successfully.", outcome.event)

    def clock_out_employee(
        self,
        actor: Actor,
        *,
        employee_id: str,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> OverrideResult:
        scoped = self._scope(actor, employee_id)
        if isinstance(scoped, OverrideResult):
            return scoped

        def guard(day_state: EmployeeDayState) -> Optional[IntentDecision]:
            if day_state.state != AttendanceState.CLOCKED_OUT:
                return None
            ever_clocked_in = self._events.find_most_recent_by_type(
                scoped.employee_id, scoped.company_id, [EventType.CLOCK_IN]
            )
            return conflict(ALREADY_CLOCKED_OUT if ever_clocked_in else NOT_CLOCKED_IN)

        try:
            outcome = self._run(
                employee=scoped,
                event_type=EventType.CLOCK_OUT,
                location_from=lambda day: day.last_clock_in,
                notes=self._note(notes, f"Manually clocked out by {actor.name or actor.email}"),
                now=now or utc_now(),
                guard=guard,
            )
        except Exception:
            logger.exception("Error clocking out employee %s", employee_id)
            return OverrideResult.fail("Failed to clock out employee.", RejectionKind.VALIDATION)

        if not outcome.accepted:
            return OverrideResult.fail(outcome.decision.reason, outcome.decision.kind)
        return OverrideResult.ok("Employee clocked out successfully.", outcome.event)
