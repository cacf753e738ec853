from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.locks import EmployeeLockRegistry
from .attendance.mysql_event_repository import MySQLEventRepository
from .attendance.recorder import AttendanceRecorder
from .attendance.repository import EventStore
from .attendance.service import ClockService
from .core.constants import DEBOUNCE_MINUTES
from .core.enums import DayBucketPolicy
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_card_repository import MySQLCardRepository
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import CardRepository, EmployeeRepository
from .employees.resolver import EmployeeResolver
from .employees.service import CardService
from .overrides.service import ManualOverrideGate
from .reports.service import ReportService
from .timesheets.aggregator import TimesheetAggregator
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from .timesheets.repository import TimesheetStore


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    events_repo: EventStore
    employees_repo: EmployeeRepository
    cards_repo: CardRepository
    timesheets_repo: TimesheetStore

    resolver: EmployeeResolver
    aggregator: TimesheetAggregator
    recorder: AttendanceRecorder
    clock_service: ClockService
    override_gate: ManualOverrideGate
    card_service: CardService
    report_service: ReportService


def build_services(
    *,
    events_repo: EventStore,
    employees_repo: EmployeeRepository,
    cards_repo: CardRepository,
    timesheets_repo: TimesheetStore,
    conn: Optional[DatabaseConnection] = None,
    debounce_minutes: int = DEBOUNCE_MINUTES,
    day_bucket: DayBucketPolicy = DayBucketPolicy.PROCESSING_DAY,
) -> Container:
    """Wire services over any repository implementations (MySQL in production, in-memory in tests)."""
    resolver = EmployeeResolver(employees_repo, cards_repo)
    aggregator = TimesheetAggregator(events_repo, timesheets_repo, day_bucket=day_bucket)
    recorder = AttendanceRecorder(
        events_repo,
        aggregator,
        locks=EmployeeLockRegistry(),
        debounce_minutes=debounce_minutes,
    )
    clock_service = ClockService(events_repo, employees_repo, cards_repo, recorder, resolver=resolver)
    override_gate = ManualOverrideGate(events_repo, employees_repo, recorder)
    card_service = CardService(cards_repo, employees_repo)
    report_service = ReportService(timesheets_repo, events_repo, employees_repo)

    return Container(
        conn=conn,
        events_repo=events_repo,
        employees_repo=employees_repo,
        cards_repo=cards_repo,
        timesheets_repo=timesheets_repo,
        resolver=resolver,
        aggregator=aggregator,
        recorder=recorder,
        clock_service=clock_service,
        override_gate=override_gate,
        card_service=card_service,
        report_service=report_service,
    )


def build_container(
    *,
    db_config: dict,
    debounce_minutes: int = DEBOUNCE_MINUTES,
    day_bucket: DayBucketPolicy = DayBucketPolicy.PROCESSING_DAY,
) -> Container:
    config = DBConfig.from_dict(db_config)
    conn = DatabaseConnection.get_instance(config)

    return build_services(
        events_repo=MySQLEventRepository(conn),
        employees_repo=MySQLEmployeeRepository(conn),
        cards_repo=MySQLCardRepository(conn),
        timesheets_repo=MySQLTimesheetRepository(conn),
        conn=conn,
        debounce_minutes=debounce_minutes,
        day_bucket=day_bucket,
    )
