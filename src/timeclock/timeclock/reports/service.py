from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..attendance.repository import EventStore
from ..common.datetime_utils import format_hours, start_of_day
from ..core.exceptions import ValidationError
from ..employees.model import Actor
from ..employees.repository import EmployeeRepository
from ..timesheets.repository import TimesheetStore

EVENT_EXPORT_HEADERS = [
    "Date",
    "Time",
    "Employee Name",
    "Employee Email",
    "Event Type",
    "Location Lat",
    "Location Lng",
    "Accuracy (meters)",
    "Address",
]

TIMESHEET_EXPORT_HEADERS = [
    "Date",
    "Employee Name",
    "Employee Email",
    "Clock In",
    "Clock Out",
    "Hours Worked",
    "Break Minutes",
    "Notes",
]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("start must be on or before end")


class ReportService:
    def __init__(self, timesheets: TimesheetStore, events: EventStore, employees: EmployeeRepository):
        self._timesheets = timesheets
        self._events = events
        self._employees = employees

    def build_timesheet_report(
        self,
        *,
        company_id: str,
        start: date,
        end: date,
        employee_id: Optional[str] = None,
    ) -> ReportData:
        _check_range(start, end)
        query_rows = self._timesheets.list_range(company_id, start_date=start, end_date=end, employee_id=employee_id)

        summary_map: dict[str, dict] = {}
        out_rows: list[dict] = []

        for r in query_rows:
            out_rows.append(
                {
                    "employee_id": r.employee_id,
                    "employee_name": r.employee_name,
                    "employee_email": r.employee_email or "",
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "clock_in": r.clock_in_at.strftime("%H:%M") if r.clock_in_at else "-",
                    "clock_out": r.clock_out_at.strftime("%H:%M") if r.clock_out_at else "-",
                    "worked_hours": format_hours(r.hours_worked),
                    "hours_worked": round(r.hours_worked, 2),
                    "break_minutes": r.break_minutes,
                    "notes": r.notes or "",
                }
            )

            s = summary_map.get(r.employee_id)
            if not s:
                s = {
                    "employee_id": r.employee_id,
                    "employee_name": r.employee_name,
                    "total_hours": 0.0,
                    "total_break_minutes": 0,
                    "days": 0,
                }
                summary_map[r.employee_id] = s
            s["total_hours"] += r.hours_worked
            s["total_break_minutes"] += r.break_minutes
            s["days"] += 1

        summary = sorted(summary_map.values(), key=lambda x: x["total_hours"], reverse=True)
        for s in summary:
            s["worked_hours"] = format_hours(s["total_hours"])
            s["total_hours"] = round(s["total_hours"], 2)
        return ReportData(rows=out_rows, summary=summary)

    def build_event_export(
        self,
        *,
        company_id: str,
        start: date,
        end: date,
        employee_id: Optional[str] = None,
    ) -> list[dict]:
        """Rows keyed by EVENT_EXPORT_HEADERS, oldest event first."""
        _check_range(start, end)
        employees = {e.employee_id: e for e in self._employees.list_for_company(company_id)}
        events = self._events.list_company_events(
            company_id,
            start=start_of_day(start),
            end=datetime.combine(end, time.max),
            employee_id=employee_id,
        )

        rows = []
        for event in sorted(events, key=lambda e: e.captured_at):
            employee = employees.get(event.employee_id)
            rows.append(
                {
                    "Date": event.captured_at.strftime("%Y-%m-%d"),
                    "Time": event.captured_at.strftime("%H:%M:%S"),
                    "Employee Name": employee.name if employee else "",
                    "Employee Email": (employee.email or "") if employee else "",
                    "Event Type": event.event_type.value,
                    "Location Lat": str(event.location_lat),
                    "Location Lng": str(event.location_lng),
                    "Accuracy (meters)": str(event.accuracy_meters),
                    "Address": event.address or "",
                }
            )
        return rows

    def build_timesheet_export(
        self,
        *,
        company_id: str,
        start: date,
        end: date,
        employee_id: Optional[str] = None,
    ) -> list[dict]:
        data = self.build_timesheet_report(company_id=company_id, start=start, end=end, employee_id=employee_id)
        return [
            {
                "Date": r["work_date"],
                "Employee Name": r["employee_name"],
                "Employee Email": r["employee_email"],
                "Clock In": r["clock_in"],
                "Clock Out": r["clock_out"],
                "Hours Worked": r["worked_hours"],
                "Break Minutes": r["break_minutes"],
                "Notes": r["notes"],
            }
            for r in data.rows
        ]

    def my_timesheets(self, actor: Actor, *, start: date, end: date) -> ReportData:
        """Timesheets of the employee profile linked to the signed-in user (matched by email)."""
        if not actor.company_id or not actor.email:
            raise ValidationError("No company found")

        employee = self._employees.find_by_email(actor.email, company_id=actor.company_id)
        if not employee:
            return ReportData(rows=[], summary=[])
        return self.build_timesheet_report(
            company_id=actor.company_id,
            start=start,
            end=end,
            employee_id=employee.employee_id,
        )
