from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Timesheet, TimesheetReportRow


class TimesheetStore(Protocol):
    def upsert(self, timesheet: Timesheet) -> bool:
        """Create or merge the row keyed by (employee_id, company_id, work_date).

        An existing row is only replaced when the incoming clock_out_at is not older than the
        stored one; its clock_in_id is kept. Returns False when the write was skipped as stale.
        """

        raise NotImplementedError

    def get_for_day(self, employee_id: str, company_id: str, work_date: date) -> Optional[Timesheet]:
        raise NotImplementedError

    def list_range(
        self,
        company_id: str,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[str] = None,
    ) -> Sequence[TimesheetReportRow]:
        raise NotImplementedError
