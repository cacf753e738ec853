from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class Timesheet:
    """Derived per-day record. Written only when a shift is closed by a clock-out."""

    employee_id: str
    company_id: str
    work_date: date
    clock_in_id: Optional[str]
    clock_out_id: Optional[str]
    clock_out_at: Optional[datetime]
    hours_worked: float
    break_minutes: int
    updated_at: datetime
    notes: Optional[str] = None
    timesheet_id: Optional[int] = None


@dataclass(frozen=True)
class TimesheetReportRow:
    """Read-model for reports: timesheet joined with employee and clock event times."""

    employee_id: str
    employee_name: str
    employee_email: Optional[str]
    work_date: date
    clock_in_at: Optional[datetime]
    clock_out_at: Optional[datetime]
    hours_worked: float
    break_minutes: int
    notes: Optional[str] = None


@dataclass(frozen=True)
class WorkFigures:
    hours_worked: float
    break_minutes: int
