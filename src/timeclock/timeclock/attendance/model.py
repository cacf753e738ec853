from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import AttendanceState, ClockMode, EventType, RejectionKind


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one immutable entry in an employee's attendance log."""

    event_id: str
    employee_id: str
    company_id: str
    event_type: EventType
    captured_at: datetime
    location_lat: float
    location_lng: float
    accuracy_meters: float
    address: Optional[str] = None
    card_id: Optional[str] = None
    device_info: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.event_id,
            "employeeId": self.employee_id,
            "companyId": self.company_id,
            "eventType": self.event_type.value,
            "capturedAt": self.captured_at.isoformat(),
            "locationLat": self.location_lat,
            "locationLng": self.location_lng,
            "accuracyMeters": self.accuracy_meters,
            "address": self.address,
            "nfcCardId": self.card_id,
            "deviceInfo": self.device_info,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class EmployeeDayState:
    """State derived from the ordered event log of one employee."""

    state: AttendanceState
    since: Optional[datetime] = None
    last_event: Optional[AttendanceEvent] = None
    last_clock_in: Optional[AttendanceEvent] = None
    active_break_start: Optional[AttendanceEvent] = None


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float
    accuracy_meters: float
    address: Optional[str] = None


@dataclass(frozen=True)
class ClockRequest:
    """Validated tap payload."""

    credential: str
    location: Location
    mode: ClockMode = ClockMode.AUTO
    requested: Optional[EventType] = None
    device_info: Optional[str] = None
    company_id: Optional[str] = None


@dataclass(frozen=True)
class IntentDecision:
    """Outcome of the state machine for one requested transition."""

    event_type: Optional[EventType] = None
    reason: Optional[str] = None
    kind: Optional[RejectionKind] = None

    @property
    def accepted(self) -> bool:
        return self.event_type is not None


@dataclass(frozen=True)
class ClockResult:
    accepted: bool
    event_type: Optional[EventType] = None
    employee_name: Optional[str] = None
    reason: Optional[str] = None
    kind: Optional[RejectionKind] = None
    event: Optional[AttendanceEvent] = field(default=None, compare=False)

    @classmethod
    def accept(cls, event: AttendanceEvent, employee_name: str) -> "ClockResult":
        return cls(accepted=True, event_type=event.event_type, employee_name=employee_name, event=event)

    @classmethod
    def reject(cls, reason: str, kind: RejectionKind) -> "ClockResult":
        return cls(accepted=False, reason=reason, kind=kind)

    def to_dict(self) -> dict[str, Any]:
        if not self.accepted:
            return {"accepted": False, "reason": self.reason, "kind": self.kind.value if self.kind else None}
        return {
            "accepted": True,
            "eventType": self.event_type.value if self.event_type else None,
            "employeeName": self.employee_name,
            "event": self.event.to_dict() if self.event else None,
        }
