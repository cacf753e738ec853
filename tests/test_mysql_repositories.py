from datetime import date, datetime

import mysql.connector
import pytest

from src.timeclock.timeclock.attendance.model import AttendanceEvent
from src.timeclock.timeclock.attendance.mysql_event_repository import MySQLEventRepository
from src.timeclock.timeclock.core.enums import EventType
from src.timeclock.timeclock.core.exceptions import StaleEventError
from src.timeclock.timeclock.timesheets.model import Timesheet
from src.timeclock.timeclock.timesheets.mysql_timesheet_repository import MySQLTimesheetRepository


class ScriptedCursor:
    """Cursor stand-in: records statements, answers fetchone from a queue, fails one statement on demand."""

    def __init__(self, rows=(), *, fail_on=None, all_rows=()):
        self.rows = list(rows)
        self.all_rows = list(all_rows)
        self.fail_on = fail_on
        self.executed = []
        self.closed = False

    def execute(self, sql, params=None):
        statement = " ".join(sql.split())
        self.executed.append((statement, params))
        if self.fail_on and statement.startswith(self.fail_on):
            self.fail_on = None
            raise mysql.connector.IntegrityError("Duplicate entry for key 'PRIMARY'")

    def fetchone(self):
        return self.rows.pop(0) if self.rows else None

    def fetchall(self):
        return self.all_rows

    def close(self):
        self.closed = True

    def statements(self):
        return [sql for sql, _ in self.executed]


class ScriptedConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=False):
        assert dictionary
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class ScriptedFactory:
    def __init__(self, cursor):
        self.conn = ScriptedConnection(cursor)

    def connect(self):
        return self.conn


def _event(event_id="e2", event_type=EventType.CLOCK_OUT):
    return AttendanceEvent(
        event_id=event_id,
        employee_id="emp-1",
        company_id="co-1",
        event_type=event_type,
        captured_at=datetime(2026, 2, 2, 17, 0),
        location_lat=52.52,
        location_lng=13.405,
        accuracy_meters=10.0,
    )


def _timesheet(clock_out_at, *, clock_in_id="in-2"):
    return Timesheet(
        employee_id="emp-1",
        company_id="co-1",
        work_date=date(2026, 2, 2),
        clock_in_id=clock_in_id,
        clock_out_id="out-2",
        clock_out_at=clock_out_at,
        hours_worked=2.5,
        break_minutes=0,
        updated_at=datetime(2026, 2, 2, 17, 1),
    )


def _event_repo(cursor):
    factory = ScriptedFactory(cursor)
    return MySQLEventRepository(factory), factory.conn


def _timesheet_repo(cursor):
    factory = ScriptedFactory(cursor)
    return MySQLTimesheetRepository(factory), factory.conn


def test_insert_with_matching_head_moves_it_and_appends():
    cur = ScriptedCursor([{"last_event_id": "e1"}])
    repo, conn = _event_repo(cur)

    repo.insert(_event("e2"), expected_last_event_id="e1")

    statements = cur.statements()
    assert statements[0].endswith("FOR UPDATE")
    assert statements[1].startswith("UPDATE attendance_heads")
    assert cur.executed[1][1][0] == "e2"
    assert statements[2].startswith("INSERT INTO attendance_events")
    assert cur.executed[2][1][0] == "e2"
    assert conn.committed and not conn.rolled_back and conn.closed
    assert cur.closed


def test_insert_with_stale_head_writes_nothing():
    cur = ScriptedCursor([{"last_event_id": "rival"}])
    repo, conn = _event_repo(cur)

    with pytest.raises(StaleEventError) as err:
        repo.insert(_event("e2"), expected_last_event_id="e1")

    assert (err.value.expected, err.value.actual) == ("e1", "rival")
    assert len(cur.executed) == 1
    assert conn.rolled_back and not conn.committed


def test_missing_head_is_seeded_from_the_latest_logged_event():
    cur = ScriptedCursor([None, {"event_id": "e1"}])
    repo, conn = _event_repo(cur)

    repo.insert(_event("e2"), expected_last_event_id="e1")

    statements = cur.statements()
    assert statements[1].startswith("SELECT event_id FROM attendance_events")
    assert "ORDER BY seq DESC" in statements[1]
    assert statements[2].startswith("INSERT INTO attendance_heads")
    assert cur.executed[2][1] == ("emp-1", "co-1", "e2", datetime(2026, 2, 2, 17, 0))
    assert statements[3].startswith("INSERT INTO attendance_events")
    assert conn.committed


def test_first_event_of_an_empty_partition():
    cur = ScriptedCursor([None, None])
    repo, conn = _event_repo(cur)

    repo.insert(_event("e1", EventType.CLOCK_IN), expected_last_event_id=None)

    assert [s.split()[0:3] for s in cur.statements()[2:]] == [
        ["INSERT", "INTO", "attendance_heads(employee_id,"],
        ["INSERT", "INTO", "attendance_events(event_id,"],
    ]
    assert conn.committed


def test_missing_head_with_a_newer_logged_event_is_stale():
    cur = ScriptedCursor([None, {"event_id": "e9"}])
    repo, conn = _event_repo(cur)

    with pytest.raises(StaleEventError):
        repo.insert(_event("e2"), expected_last_event_id="e1")

    assert not any(s.startswith("INSERT") for s in cur.statements())
    assert conn.rolled_back


def test_head_seeded_concurrently_maps_to_stale():
    cur = ScriptedCursor([None, {"event_id": "e1"}], fail_on="INSERT INTO attendance_heads")
    repo, conn = _event_repo(cur)

    with pytest.raises(StaleEventError) as err:
        repo.insert(_event("e2"), expected_last_event_id="e1")

    assert err.value.actual is None
    assert not any(s.startswith("INSERT INTO attendance_events") for s in cur.statements())
    assert conn.rolled_back and not conn.committed


def test_reads_follow_insertion_sequence():
    cur = ScriptedCursor()
    repo, _ = _event_repo(cur)

    repo.find_most_recent("emp-1", "co-1")
    repo.find_most_recent_by_type("emp-1", "co-1", [EventType.CLOCK_IN], before_event_id="out-1")
    repo.find_since("emp-1", "co-1", event_id="in-1", event_types=[EventType.BREAK_END])

    latest, by_type, since = cur.executed
    assert latest[0].endswith("ORDER BY seq DESC LIMIT 1")
    assert "seq < (SELECT seq FROM attendance_events WHERE event_id=%s)" in by_type[0]
    assert by_type[1] == ("emp-1", "co-1", "CLOCK_IN", "out-1")
    assert "seq >= (SELECT seq FROM attendance_events WHERE event_id=%s)" in since[0]
    assert since[0].endswith("ORDER BY seq ASC")
    assert since[1] == ("emp-1", "co-1", "in-1", "BREAK_END")


def test_first_timesheet_of_the_day_is_inserted():
    cur = ScriptedCursor([None])
    repo, conn = _timesheet_repo(cur)

    assert repo.upsert(_timesheet(datetime(2026, 2, 2, 15, 30))) is True

    statements = cur.statements()
    assert statements[0].endswith("FOR UPDATE")
    assert statements[1].startswith("INSERT INTO timesheets")
    assert len(statements) == 2
    assert conn.committed


def test_stale_clock_out_is_skipped():
    cur = ScriptedCursor([{"timesheet_id": 7, "clock_out_at": datetime(2026, 2, 2, 17, 0)}])
    repo, conn = _timesheet_repo(cur)

    assert repo.upsert(_timesheet(datetime(2026, 2, 2, 12, 0))) is False

    assert not any(s.startswith("UPDATE") for s in cur.statements())
    assert conn.committed


def test_later_clock_out_updates_and_keeps_first_clock_in():
    cur = ScriptedCursor([{"timesheet_id": 7, "clock_out_at": datetime(2026, 2, 2, 10, 0)}])
    repo, _ = _timesheet_repo(cur)

    assert repo.upsert(_timesheet(datetime(2026, 2, 2, 15, 30))) is True

    sql, params = cur.executed[1]
    assert sql.startswith("UPDATE timesheets")
    assert "clock_in_id=COALESCE(clock_in_id, %s)" in sql
    assert params[0] == "in-2"
    assert params[-3:] == ("emp-1", "co-1", date(2026, 2, 2))


def test_lost_insert_race_merges_into_the_winning_row():
    cur = ScriptedCursor(
        [None, {"timesheet_id": 7, "clock_out_at": datetime(2026, 2, 2, 10, 0)}],
        fail_on="INSERT INTO timesheets",
    )
    repo, conn = _timesheet_repo(cur)

    assert repo.upsert(_timesheet(datetime(2026, 2, 2, 15, 30))) is True

    statements = cur.statements()
    assert [s.endswith("FOR UPDATE") for s in statements] == [True, False, True, False]
    assert statements[3].startswith("UPDATE timesheets")
    assert conn.committed and not conn.rolled_back


def test_lost_insert_race_to_a_later_clock_out_is_skipped():
    cur = ScriptedCursor(
        [None, {"timesheet_id": 7, "clock_out_at": datetime(2026, 2, 2, 18, 0)}],
        fail_on="INSERT INTO timesheets",
    )
    repo, _ = _timesheet_repo(cur)

    assert repo.upsert(_timesheet(datetime(2026, 2, 2, 15, 30))) is False
    assert not any(s.startswith("UPDATE") for s in cur.statements())
