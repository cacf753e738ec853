from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account roles used for authorization."""

    ADMIN = "ADMIN"
    EMPLOYER = "EMPLOYER"
    EMPLOYEE = "EMPLOYEE"


class EventType(str, Enum):
    """Attendance event types stored in the event log."""

    CLOCK_IN = "CLOCK_IN"
    CLOCK_OUT = "CLOCK_OUT"
    BREAK_START = "BREAK_START"
    BREAK_END = "BREAK_END"


BREAK_EVENT_TYPES = (EventType.BREAK_START, EventType.BREAK_END)


class AttendanceState(str, Enum):
    """State of an employee derived from their event history."""

    CLOCKED_OUT = "CLOCKED_OUT"
    CLOCKED_IN = "CLOCKED_IN"
    ON_BREAK = "ON_BREAK"


class ClockMode(str, Enum):
    """Auto mode infers the event from history; explicit mode validates the requested one."""

    AUTO = "AUTO"
    EXPLICIT = "EXPLICIT"


class RejectionKind(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    STATE_CONFLICT = "STATE_CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"


class DayBucketPolicy(str, Enum):
    """Which calendar day a timesheet row is keyed on."""

    PROCESSING_DAY = "processing_day"
    CLOCK_IN_DAY = "clock_in_day"


class ReportType(str, Enum):
    TIMESHEET = "TIMESHEET"
    EVENTS = "EVENTS"
