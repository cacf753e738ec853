from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...attendance.model import AttendanceEvent
from ..model import WorkFigures


class TimesheetCalculator(ABC):
    """Calculator interface (Strategy Pattern for shift figures)."""

    @abstractmethod
    def compute(
        self,
        *,
        clock_in: AttendanceEvent,
        clock_out: AttendanceEvent,
        break_events: Sequence[AttendanceEvent],
    ) -> WorkFigures:
        raise NotImplementedError
