from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_locked, fetchall, fetchone
from .model import Timesheet, TimesheetReportRow
from .repository import TimesheetStore

_COLUMNS = (
    "timesheet_id, employee_id, company_id, work_date, clock_in_id, clock_out_id, clock_out_at, "
    "hours_worked, break_minutes, notes, updated_at"
)


def _to_timesheet(row: dict) -> Timesheet:
    return Timesheet(
        timesheet_id=int(row["timesheet_id"]),
        employee_id=str(row["employee_id"]),
        company_id=str(row["company_id"]),
        work_date=row["work_date"],
        clock_in_id=row.get("clock_in_id"),
        clock_out_id=row.get("clock_out_id"),
        clock_out_at=row.get("clock_out_at"),
        hours_worked=float(row.get("hours_worked") or 0),
        break_minutes=int(row.get("break_minutes") or 0),
        notes=row.get("notes"),
        updated_at=row["updated_at"],
    )


class MySQLTimesheetRepository(TimesheetStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _lock_row(cur, ts: Timesheet) -> Optional[dict]:
        return fetch_locked(
            cur,
            """
            SELECT timesheet_id, clock_out_at
            FROM timesheets
            WHERE employee_id=%s AND company_id=%s AND work_date=%s
            """,
            (ts.employee_id, ts.company_id, ts.work_date),
        )

    def upsert(self, timesheet: Timesheet) -> bool:
        ts = timesheet
        with db_cursor(self._conn_factory) as (_, cur):
            existing = self._lock_row(cur, ts)
            if existing is None:
                try:
                    cur.execute(
                        f"""
                        INSERT INTO timesheets({_COLUMNS})
                        VALUES(NULL,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                        """,
                        (
                            ts.employee_id,
                            ts.company_id,
                            ts.work_date,
                            ts.clock_in_id,
                            ts.clock_out_id,
                            ts.clock_out_at,
                            ts.hours_worked,
                            ts.break_minutes,
                            ts.notes,
                            ts.updated_at,
                        ),
                    )
                    return True
                except mysql.connector.IntegrityError:
                    # Lost the insert race on the unique day key; merge into the winner's row.
                    existing = self._lock_row(cur, ts)

            stored_out = existing.get("clock_out_at") if existing else None
            if stored_out is not None and ts.clock_out_at is not None and ts.clock_out_at < stored_out:
                return False

            cur.execute(
                """
                UPDATE timesheets
                SET clock_in_id=COALESCE(clock_in_id, %s),
                    clock_out_id=%s,
                    clock_out_at=%s,
                    hours_worked=%s,
                    break_minutes=%s,
                    updated_at=%s
                WHERE employee_id=%s AND company_id=%s AND work_date=%s
                """,
                (
                    ts.clock_in_id,
                    ts.clock_out_id,
                    ts.clock_out_at,
                    ts.hours_worked,
                    ts.break_minutes,
                    ts.updated_at,
                    ts.employee_id,
                    ts.company_id,
                    ts.work_date,
                ),
            )
            return True

    def get_for_day(self, employee_id: str, company_id: str, work_date: date) -> Optional[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM timesheets
                WHERE employee_id=%s AND company_id=%s AND work_date=%s
                """,
                (employee_id, company_id, work_date),
            )
            row = fetchone(cur)
            return _to_timesheet(row) if row else None

    def list_range(
        self,
        company_id: str,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[str] = None,
    ) -> Sequence[TimesheetReportRow]:
        sql = """
            SELECT
                t.employee_id,
                e.name AS employee_name,
                e.email AS employee_email,
                t.work_date,
                ci.captured_at AS clock_in_at,
                t.clock_out_at,
                t.hours_worked,
                t.break_minutes,
                t.notes
            FROM timesheets t
            JOIN employee_profiles e ON e.employee_id = t.employee_id
            LEFT JOIN attendance_events ci ON ci.event_id = t.clock_in_id
            WHERE t.company_id=%s AND t.work_date BETWEEN %s AND %s
        """
        params: list = [company_id, start_date, end_date]
        if employee_id:
            sql += " AND t.employee_id=%s"
            params.append(employee_id)
        sql += " ORDER BY t.work_date DESC, e.name"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)
            return [
                TimesheetReportRow(
                    employee_id=str(r["employee_id"]),
                    employee_name=r["employee_name"],
                    employee_email=r.get("employee_email"),
                    work_date=r["work_date"],
                    clock_in_at=r.get("clock_in_at"),
                    clock_out_at=r.get("clock_out_at"),
                    hours_worked=float(r.get("hours_worked") or 0),
                    break_minutes=int(r.get("break_minutes") or 0),
                    notes=r.get("notes"),
                )
                for r in rows
            ]
