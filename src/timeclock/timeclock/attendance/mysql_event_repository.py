from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

import mysql.connector

from ..core.enums import EventType
from ..core.exceptions import StaleEventError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_locked, fetchall, fetchone, placeholders
from .model import AttendanceEvent
from .repository import EventStore

_COLUMNS = (
    "event_id, employee_id, company_id, event_type, captured_at, location_lat, location_lng, "
    "accuracy_meters, address, card_id, device_info, notes"
)


def _to_event(row: dict) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=row["event_id"],
        employee_id=str(row["employee_id"]),
        company_id=str(row["company_id"]),
        event_type=EventType(row["event_type"]),
        captured_at=row["captured_at"],
        location_lat=float(row["location_lat"]),
        location_lng=float(row["location_lng"]),
        accuracy_meters=float(row["accuracy_meters"]),
        address=row.get("address"),
        card_id=row.get("card_id"),
        device_info=row.get("device_info"),
        notes=row.get("notes"),
    )


class MySQLEventRepository(EventStore):
    """Event log on MySQL.

    Writes are fenced through the `attendance_heads` row of the partition: the row is locked
    with SELECT ... FOR UPDATE inside the insert transaction and compared to the last event the
    caller decided on.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_most_recent(self, employee_id: str, company_id: str) -> Optional[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                WHERE employee_id=%s AND company_id=%s
                ORDER BY seq DESC
                LIMIT 1
                """,
                (employee_id, company_id),
            )
            row = fetchone(cur)
            return _to_event(row) if row else None

    def find_most_recent_by_type(
        self,
        employee_id: str,
        company_id: str,
        event_types: Iterable[EventType],
        *,
        before_event_id: Optional[str] = None,
    ) -> Optional[AttendanceEvent]:
        types = [t.value for t in event_types]
        sql = f"""
            SELECT {_COLUMNS}
            FROM attendance_events
            WHERE employee_id=%s AND company_id=%s AND event_type IN ({placeholders(len(types))})
        """
        params: list = [employee_id, company_id, *types]
        if before_event_id is not None:
            sql += " AND seq < (SELECT seq FROM attendance_events WHERE event_id=%s)"
            params.append(before_event_id)
        sql += " ORDER BY seq DESC LIMIT 1"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            return _to_event(row) if row else None

    def find_since(
        self,
        employee_id: str,
        company_id: str,
        *,
        event_id: str,
        event_types: Optional[Iterable[EventType]] = None,
    ) -> Sequence[AttendanceEvent]:
        sql = f"""
            SELECT {_COLUMNS}
            FROM attendance_events
            WHERE employee_id=%s AND company_id=%s
              AND seq >= (SELECT seq FROM attendance_events WHERE event_id=%s)
        """
        params: list = [employee_id, company_id, event_id]
        if event_types is not None:
            types = [t.value for t in event_types]
            sql += f" AND event_type IN ({placeholders(len(types))})"
            params.extend(types)
        sql += " ORDER BY seq ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_event(r) for r in fetchall(cur)]

    def insert(self, event: AttendanceEvent, *, expected_last_event_id: Optional[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            head = fetch_locked(
                cur,
                "SELECT last_event_id FROM attendance_heads WHERE employee_id=%s AND company_id=%s",
                (event.employee_id, event.company_id),
            )

            if head is None:
                # First fenced write for this partition: seed the head from the log itself.
                cur.execute(
                    """
                    SELECT event_id FROM attendance_events
                    WHERE employee_id=%s AND company_id=%s
                    ORDER BY seq DESC
                    LIMIT 1
                    """,
                    (event.employee_id, event.company_id),
                )
                latest = fetchone(cur)
                actual = latest["event_id"] if latest else None
                if actual != expected_last_event_id:
                    raise StaleEventError(event.employee_id, expected_last_event_id, actual)
                try:
                    cur.execute(
                        """
                        INSERT INTO attendance_heads(employee_id, company_id, last_event_id, updated_at)
                        VALUES(%s,%s,%s,%s)
                        """,
                        (event.employee_id, event.company_id, event.event_id, event.captured_at),
                    )
                except mysql.connector.IntegrityError:
                    raise StaleEventError(event.employee_id, expected_last_event_id, None)
            else:
                actual = head.get("last_event_id")
                if actual != expected_last_event_id:
                    raise StaleEventError(event.employee_id, expected_last_event_id, actual)
                cur.execute(
                    """
                    UPDATE attendance_heads
                    SET last_event_id=%s, updated_at=%s
                    WHERE employee_id=%s AND company_id=%s
                    """,
                    (event.event_id, event.captured_at, event.employee_id, event.company_id),
                )

            cur.execute(
                f"""
                INSERT INTO attendance_events({_COLUMNS})
                VALUES({placeholders(12)})
                """,
                (
                    event.event_id,
                    event.employee_id,
                    event.company_id,
                    event.event_type.value,
                    event.captured_at,
                    event.location_lat,
                    event.location_lng,
                    event.accuracy_meters,
                    event.address,
                    event.card_id,
                    event.device_info,
                    event.notes,
                ),
            )

    def list_company_events(
        self,
        company_id: str,
        *,
        start: datetime,
        end: datetime,
        employee_id: Optional[str] = None,
    ) -> Sequence[AttendanceEvent]:
        sql = f"""
            SELECT {_COLUMNS}
            FROM attendance_events
            WHERE company_id=%s AND captured_at BETWEEN %s AND %s
        """
        params: list = [company_id, start, end]
        if employee_id:
            sql += " AND employee_id=%s"
            params.append(employee_id)
        sql += " ORDER BY seq DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_event(r) for r in fetchall(cur)]
