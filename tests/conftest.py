from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from types import SimpleNamespace
from typing import Callable, Iterable, Optional

import pytest

from src.timeclock.timeclock.attendance.model import AttendanceEvent
from src.timeclock.timeclock.container import build_services
from src.timeclock.timeclock.core.enums import DayBucketPolicy, EventType, Role
from src.timeclock.timeclock.core.exceptions import StaleEventError
from src.timeclock.timeclock.employees.model import Actor, EmployeeProfile, NFCCard
from src.timeclock.timeclock.timesheets.model import Timesheet, TimesheetReportRow


class InMemoryEvents:
    """Event log fake with the same compare-and-swap fence as the MySQL store."""

    def __init__(self):
        self._events: list[AttendanceEvent] = []
        self._lock = threading.Lock()
        self.before_insert: Optional[Callable[[AttendanceEvent], None]] = None

    def _partition(self, employee_id: str, company_id: str) -> list[AttendanceEvent]:
        # list order is the log order, whatever captured_at says
        return [e for e in self._events if e.employee_id == employee_id and e.company_id == company_id]

    def all(self) -> list[AttendanceEvent]:
        return list(self._events)

    def find_most_recent(self, employee_id: str, company_id: str) -> Optional[AttendanceEvent]:
        items = self._partition(employee_id, company_id)
        return items[-1] if items else None

    def find_most_recent_by_type(self, employee_id, company_id, event_types, *, before_event_id=None):
        items = self._partition(employee_id, company_id)
        if before_event_id is not None:
            ids = [e.event_id for e in items]
            items = items[: ids.index(before_event_id)] if before_event_id in ids else []
        types = set(event_types)
        matching = [e for e in items if e.event_type in types]
        return matching[-1] if matching else None

    def find_since(self, employee_id, company_id, *, event_id, event_types=None):
        items = self._partition(employee_id, company_id)
        ids = [e.event_id for e in items]
        if event_id not in ids:
            return []
        types = set(event_types) if event_types is not None else None
        return [e for e in items[ids.index(event_id) :] if types is None or e.event_type in types]

    def insert(self, event: AttendanceEvent, *, expected_last_event_id: Optional[str]) -> None:
        if self.before_insert is not None:
            self.before_insert(event)
        with self._lock:
            last = self.find_most_recent(event.employee_id, event.company_id)
            actual = last.event_id if last else None
            if actual != expected_last_event_id:
                raise StaleEventError(event.employee_id, expected_last_event_id, actual)
            self._events.append(event)

    def add(self, event: AttendanceEvent) -> AttendanceEvent:
        """Seed history without going through the fence."""
        self._events.append(event)
        return event

    def list_company_events(self, company_id, *, start, end, employee_id=None):
        items = [
            e
            for e in self._events
            if e.company_id == company_id
            and start <= e.captured_at <= end
            and (employee_id is None or e.employee_id == employee_id)
        ]
        return sorted(items, key=lambda e: e.captured_at, reverse=True)


@dataclass
class InMemoryEmployees:
    profiles: dict[str, EmployeeProfile] = field(default_factory=dict)

    def add(self, profile: EmployeeProfile) -> EmployeeProfile:
        self.profiles[profile.employee_id] = profile
        return profile

    def get_by_id(self, employee_id: str) -> Optional[EmployeeProfile]:
        return self.profiles.get(employee_id)

    def find_active_by_code(self, employee_code: str, *, company_id: Optional[str] = None):
        return [
            p
            for p in self.profiles.values()
            if p.employee_code == employee_code and p.is_active and (company_id is None or p.company_id == company_id)
        ]

    def find_by_email(self, email: str, *, company_id: str) -> Optional[EmployeeProfile]:
        for p in self.profiles.values():
            if p.email == email and p.company_id == company_id:
                return p
        return None

    def list_for_company(self, company_id: str):
        return sorted((p for p in self.profiles.values() if p.company_id == company_id), key=lambda p: p.name)


@dataclass
class InMemoryCards:
    cards: dict[str, NFCCard] = field(default_factory=dict)
    touched: list[tuple[str, datetime]] = field(default_factory=list)

    def add(self, card: NFCCard) -> NFCCard:
        self.cards[card.card_id] = card
        return card

    def get_by_id(self, card_id: str) -> Optional[NFCCard]:
        return self.cards.get(card_id)

    def get_by_uid(self, uid: str) -> Optional[NFCCard]:
        for c in self.cards.values():
            if c.uid == uid:
                return c
        return None

    def latest_active_for_employee(self, employee_id: str) -> Optional[NFCCard]:
        items = [c for c in self.cards.values() if c.employee_id == employee_id and c.is_active]
        items.sort(key=lambda c: c.registered_at)
        return items[-1] if items else None

    def create(self, card: NFCCard) -> str:
        self.cards[card.card_id] = card
        return card.card_id

    def set_active(self, card_id: str, *, is_active: bool) -> bool:
        card = self.cards.get(card_id)
        if not card:
            return False
        self.cards[card_id] = replace(card, is_active=is_active)
        return True

    def touch(self, card_id: str, *, used_at: datetime) -> None:
        self.touched.append((card_id, used_at))


class InMemoryTimesheets:
    def __init__(self, employees: InMemoryEmployees, events: InMemoryEvents):
        self._employees = employees
        self._events = events
        self.rows: dict[tuple[str, str, date], Timesheet] = {}
        self._lock = threading.Lock()

    def upsert(self, timesheet: Timesheet) -> bool:
        key = (timesheet.employee_id, timesheet.company_id, timesheet.work_date)
        with self._lock:
            existing = self.rows.get(key)
            if existing is None:
                self.rows[key] = timesheet
                return True
            if existing.clock_out_at and timesheet.clock_out_at and timesheet.clock_out_at < existing.clock_out_at:
                return False
            self.rows[key] = replace(timesheet, clock_in_id=existing.clock_in_id or timesheet.clock_in_id)
            return True

    def get_for_day(self, employee_id: str, company_id: str, work_date: date) -> Optional[Timesheet]:
        return self.rows.get((employee_id, company_id, work_date))

    def list_range(self, company_id, *, start_date, end_date, employee_id=None):
        clock_ins = {e.event_id: e.captured_at for e in self._events.all()}
        out = []
        for ts in self.rows.values():
            if ts.company_id != company_id or not (start_date <= ts.work_date <= end_date):
                continue
            if employee_id and ts.employee_id != employee_id:
                continue
            employee = self._employees.get_by_id(ts.employee_id)
            out.append(
                TimesheetReportRow(
                    employee_id=ts.employee_id,
                    employee_name=employee.name if employee else "",
                    employee_email=employee.email if employee else None,
                    work_date=ts.work_date,
                    clock_in_at=clock_ins.get(ts.clock_in_id),
                    clock_out_at=ts.clock_out_at,
                    hours_worked=ts.hours_worked,
                    break_minutes=ts.break_minutes,
                    notes=ts.notes,
                )
            )
        out.sort(key=lambda r: (r.work_date, r.employee_name), reverse=True)
        return out


CARD_UID = "04:A2:2B:9C:11:80"


def make_event(
    event_type: EventType,
    at: datetime,
    *,
    event_id: str,
    employee_id: str = "emp-1",
    company_id: str = "co-1",
    lat: float = 52.52,
    lng: float = 13.405,
    address: Optional[str] = "Main St 1",
) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=event_id,
        employee_id=employee_id,
        company_id=company_id,
        event_type=event_type,
        captured_at=at,
        location_lat=lat,
        location_lng=lng,
        accuracy_meters=12.0,
        address=address,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 9, 0, 0)


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def tap_payload():
    def make(credential: str = CARD_UID, **overrides) -> dict:
        payload = {
            "nfcCardId": credential,
            "locationLat": 52.52,
            "locationLng": 13.405,
            "accuracyMeters": 15.0,
            "address": "Main St 1",
            "deviceInfo": "kiosk-1",
        }
        payload.update(overrides)
        return payload

    return make


@pytest.fixture
def world():
    """Two companies that both employ an 'EMP-007'; only company co-1's employee has a card."""
    events = InMemoryEvents()
    employees = InMemoryEmployees()
    cards = InMemoryCards()
    timesheets = InMemoryTimesheets(employees, events)

    ada = employees.add(
        EmployeeProfile(
            employee_id="emp-1",
            company_id="co-1",
            employee_code="EMP-007",
            name="Ada Lovelace",
            email="ada@example.com",
        )
    )
    grace = employees.add(
        EmployeeProfile(
            employee_id="emp-2",
            company_id="co-2",
            employee_code="EMP-007",
            name="Grace Hopper",
            email="grace@example.com",
        )
    )
    inactive = employees.add(
        EmployeeProfile(
            employee_id="emp-3",
            company_id="co-1",
            employee_code="EMP-404",
            name="Old Timer",
            email="old@example.com",
            is_active=False,
        )
    )
    card = cards.add(
        NFCCard(
            card_id="card-1",
            uid=CARD_UID,
            employee_id="emp-1",
            company_id="co-1",
            is_active=True,
            registered_at=datetime(2026, 1, 1, 8, 0, 0),
        )
    )

    container = build_services(
        events_repo=events,
        employees_repo=employees,
        cards_repo=cards,
        timesheets_repo=timesheets,
        day_bucket=DayBucketPolicy.PROCESSING_DAY,
    )

    return SimpleNamespace(
        events=events,
        employees=employees,
        cards=cards,
        timesheets=timesheets,
        container=container,
        ada=ada,
        grace=grace,
        inactive=inactive,
        card=card,
        employer=Actor(user_id="u-1", name="Boss", role=Role.EMPLOYER, email="boss@example.com", company_id="co-1"),
        other_employer=Actor(user_id="u-2", name="Rival", role=Role.EMPLOYER, company_id="co-2"),
        employee_actor=Actor(user_id="u-3", name="Ada", role=Role.EMPLOYEE, email="ada@example.com", company_id="co-1"),
    )
