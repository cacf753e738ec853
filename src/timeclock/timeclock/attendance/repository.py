from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import EventType
from .model import AttendanceEvent


class EventStore(Protocol):
    """Append-only attendance log, partitioned by (employee_id, company_id), ordered by insertion.

    "Most recent" always means last appended, which is also what the insert fence compares
    against; captured_at is data and may step backwards with the server clock.
    """

    def find_most_recent(self, employee_id: str, company_id: str) -> Optional[AttendanceEvent]:
        raise NotImplementedError

    def find_most_recent_by_type(
        self,
        employee_id: str,
        company_id: str,
        event_types: Iterable[EventType],
        *,
        before_event_id: Optional[str] = None,
    ) -> Optional[AttendanceEvent]:
        """Latest event of the given types, optionally only among those appended before another event."""
        raise NotImplementedError

    def find_since(
        self,
        employee_id: str,
        company_id: str,
        *,
        event_id: str,
        event_types: Optional[Iterable[EventType]] = None,
    ) -> Sequence[AttendanceEvent]:
        """The given event and every later one of the partition in log order, optionally filtered by type."""

        raise NotImplementedError

    def insert(self, event: AttendanceEvent, *, expected_last_event_id: Optional[str]) -> None:
        """Append the event only if the partition's last event id still equals the expected one.

        Raises StaleEventError otherwise.
        """

        raise NotImplementedError

    def list_company_events(
        self,
        company_id: str,
        *,
        start: datetime,
        end: datetime,
        employee_id: Optional[str] = None,
    ) -> Sequence[AttendanceEvent]:
        raise NotImplementedError
