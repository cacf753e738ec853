from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import utc_now
from ..common.validators import optional_text, require_min, require_range
from ..core.constants import MAX_LATITUDE, MAX_LONGITUDE, MIN_LATITUDE, MIN_LONGITUDE
from ..core.enums import ClockMode, EventType, RejectionKind
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.model import Actor, ResolvedEmployee
from ..employees.repository import CardRepository, EmployeeRepository
from ..employees.resolver import EmployeeResolver
from .model import AttendanceEvent, ClockRequest, ClockResult, EmployeeDayState, Location
from .recorder import AttendanceRecorder
from .repository import EventStore
from .state_machine import load_day_state

logger = logging.getLogger(__name__)

TAP_EVENT_TYPES = {EventType.CLOCK_IN.value, EventType.CLOCK_OUT.value}


def parse_clock_request(payload: Any) -> ClockRequest:
    """Validate a tap payload. Raises ValidationError before any state is read."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid request body")

    if payload.get("locationLat") is None or payload.get("locationLng") is None:
        raise ValidationError("Location is required for clock in/out")
    lat = require_range(payload.get("locationLat"), "locationLat", MIN_LATITUDE, MAX_LATITUDE)
    lng = require_range(payload.get("locationLng"), "locationLng", MIN_LONGITUDE, MAX_LONGITUDE)
    accuracy = require_min(payload.get("accuracyMeters"), "accuracyMeters", 0)

    credential = payload.get("nfcCardId") or payload.get("credential")
    if not isinstance(credential, str) or not credential.strip():
        raise ValidationError("NFC card ID or employee code is required")

    raw_type = payload.get("eventType")
    requested: Optional[EventType] = None
    if raw_type is not None:
        if raw_type not in TAP_EVENT_TYPES:
            raise ValidationError("eventType must be CLOCK_IN or CLOCK_OUT")
        requested = EventType(raw_type)

    return ClockRequest(
        credential=credential.strip(),
        location=Location(
            lat=lat,
            lng=lng,
            accuracy_meters=accuracy,
            address=optional_text(payload.get("address"), "address"),
        ),
        mode=ClockMode.EXPLICIT if requested else ClockMode.AUTO,
        requested=requested,
        device_info=optional_text(payload.get("deviceInfo"), "deviceInfo"),
        company_id=optional_text(payload.get("companyId"), "companyId"),
    )


class ClockService:
    """NFC / employee-code tap flow: resolve, decide, append, aggregate on clock-out."""

    def __init__(
        self,
        events: EventStore,
        employees: EmployeeRepository,
        cards: CardRepository,
        recorder: AttendanceRecorder,
        *,
        resolver: Optional[EmployeeResolver] = None,
    ):
        self._events = events
        self._employees = employees
        self._cards = cards
        self._recorder = recorder
        self._resolver = resolver or EmployeeResolver(employees, cards)

    def clock(self, payload: Any, *, now: datetime | None = None) -> ClockResult:
        try:
            request = parse_clock_request(payload)
        except ValidationError as e:
            logger.info("Rejected tap: %s", e)
            return ClockResult.reject(str(e), RejectionKind.VALIDATION)
        return self.clock_request(request, now=now)

    def clock_request(self, request: ClockRequest, *, now: datetime | None = None) -> ClockResult:
        now = now or utc_now()

        try:
            resolved = self._resolver.resolve_by_credential(request.credential, company_id=request.company_id)
        except NotFoundError as e:
            logger.info("Rejected tap: %s", e)
            return ClockResult.reject(str(e), RejectionKind.NOT_FOUND)
        except ValidationError as e:
            return ClockResult.reject(str(e), RejectionKind.VALIDATION)

        def build_event(day_state: EmployeeDayState, event_type: EventType, event_id: str) -> AttendanceEvent:
            return self._tap_event(event_id, resolved, request, event_type, now)

        outcome = self._recorder.record(
            employee_id=resolved.employee_id,
            company_id=resolved.company_id,
            mode=request.mode,
            requested=request.requested,
            build_event=build_event,
            now=now,
        )
        if not outcome.accepted:
            logger.info("Rejected tap for employee %s: %s", resolved.employee_id, outcome.decision.reason)
            return ClockResult.reject(outcome.decision.reason or "", outcome.decision.kind or RejectionKind.STATE_CONFLICT)

        if resolved.card_id:
            self._cards.touch(resolved.card_id, used_at=now)
        return ClockResult.accept(outcome.event, resolved.employee.name)

    @staticmethod
    def _tap_event(
        event_id: str,
        resolved: ResolvedEmployee,
        request: ClockRequest,
        event_type: EventType,
        now: datetime,
    ) -> AttendanceEvent:
        return AttendanceEvent(
            event_id=event_id,
            employee_id=resolved.employee_id,
            company_id=resolved.company_id,
            event_type=event_type,
            captured_at=now,
            location_lat=request.location.lat,
            location_lng=request.location.lng,
            accuracy_meters=request.location.accuracy_meters,
            address=request.location.address,
            card_id=resolved.card_id,
            device_info=request.device_info,
        )

    def current_state(self, employee_id: str, company_id: str) -> EmployeeDayState:
        return load_day_state(self._events, employee_id, company_id)

    def last_event_for_user(self, actor: Actor) -> Optional[AttendanceEvent]:
        """Latest event of the employee profile matching the signed-in user's email."""
        if not actor.company_id or not actor.email:
            raise ValidationError("No company found")

        employee = self._employees.find_by_email(actor.email, company_id=actor.company_id)
        if not employee or not employee.is_active:
            return None
        return self._events.find_most_recent(employee.employee_id, actor.company_id)
