from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..attendance.model import AttendanceEvent
from ..attendance.repository import EventStore
from ..common.datetime_utils import utc_now
from ..core.enums import BREAK_EVENT_TYPES, DayBucketPolicy, EventType
from ..core.exceptions import ValidationError
from .calculator.base import TimesheetCalculator
from .calculator.standard_calculator import StandardTimesheetCalculator
from .model import Timesheet
from .repository import TimesheetStore

logger = logging.getLogger(__name__)


class TimesheetAggregator:
    """Derive hours and break minutes for a closed shift and merge them into the day's timesheet."""

    def __init__(
        self,
        events: EventStore,
        timesheets: TimesheetStore,
        *,
        calculator: Optional[TimesheetCalculator] = None,
        day_bucket: DayBucketPolicy = DayBucketPolicy.PROCESSING_DAY,
    ):
        self._events = events
        self._timesheets = timesheets
        self._calculator = calculator or StandardTimesheetCalculator()
        self._day_bucket = DayBucketPolicy(day_bucket)

    def day_bucket_for(self, *, clock_in: AttendanceEvent, now: datetime) -> date:
        if self._day_bucket == DayBucketPolicy.CLOCK_IN_DAY:
            return clock_in.captured_at.date()
        return now.date()

    def aggregate(
        self,
        *,
        clock_in: AttendanceEvent,
        clock_out: AttendanceEvent,
        now: datetime | None = None,
        bucket_at: datetime | None = None,
    ) -> Timesheet:
        if clock_out.captured_at < clock_in.captured_at:
            raise ValidationError("Clock out cannot be before clock in")

        now = now or utc_now()
        break_events = []
        for event in self._events.find_since(clock_in.employee_id, clock_in.company_id, event_id=clock_in.event_id):
            if event.event_id == clock_out.event_id:
                break
            if event.event_type in BREAK_EVENT_TYPES:
                break_events.append(event)
        figures = self._calculator.compute(clock_in=clock_in, clock_out=clock_out, break_events=break_events)

        timesheet = Timesheet(
            employee_id=clock_in.employee_id,
            company_id=clock_in.company_id,
            work_date=self.day_bucket_for(clock_in=clock_in, now=bucket_at or now),
            clock_in_id=clock_in.event_id,
            clock_out_id=clock_out.event_id,
            clock_out_at=clock_out.captured_at,
            hours_worked=figures.hours_worked,
            break_minutes=figures.break_minutes,
            updated_at=now,
        )

        if self._timesheets.upsert(timesheet):
            logger.info(
                "Timesheet %s/%s: %.3f h, %d break min",
                timesheet.employee_id,
                timesheet.work_date.isoformat(),
                timesheet.hours_worked,
                timesheet.break_minutes,
            )
        else:
            logger.warning(
                "Skipped stale timesheet write for %s/%s (clock out %s)",
                timesheet.employee_id,
                timesheet.work_date.isoformat(),
                clock_out.event_id,
            )
        return timesheet

    def rebuild_last_shift(self, employee_id: str, company_id: str, *, now: datetime | None = None) -> Optional[Timesheet]:
        """Re-run aggregation for the employee's most recent closed shift.

        Used when the timesheet write after a clock out failed. The shift is bucketed as if it
        had been processed at its clock out. Returns None when the log holds no closed shift.
        """
        clock_out = self._events.find_most_recent_by_type(employee_id, company_id, [EventType.CLOCK_OUT])
        if clock_out is None:
            return None

        clock_in = self._events.find_most_recent_by_type(
            employee_id, company_id, [EventType.CLOCK_IN], before_event_id=clock_out.event_id
        )
        if clock_in is None:
            return None
        logger.info("Rebuilding timesheet for %s from shift %s..%s", employee_id, clock_in.event_id, clock_out.event_id)
        return self.aggregate(clock_in=clock_in, clock_out=clock_out, now=now, bucket_at=clock_out.captured_at)
