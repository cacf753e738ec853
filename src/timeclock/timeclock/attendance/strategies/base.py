from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

from ...core.enums import EventType, RejectionKind
from ..model import EmployeeDayState, IntentDecision

ALREADY_CLOCKED_IN = "Already clocked in. Please clock out first."
NO_ACTIVE_CLOCK_IN = "No active clock in found. Please clock in first."
PLEASE_WAIT = "Please wait before clocking in again"
MUST_BE_CLOCKED_IN = "Employee must be clocked in to go on break."
ALREADY_ON_BREAK = "Employee is already on break."
NOT_ON_BREAK = "Employee is not currently on break."


def accept(event_type: EventType) -> IntentDecision:
    return IntentDecision(event_type=event_type)


def conflict(reason: str) -> IntentDecision:
    return IntentDecision(reason=reason, kind=RejectionKind.STATE_CONFLICT)


class IntentStrategy(ABC):
    """Strategy Pattern: how a tap or manual action maps onto a concrete event type."""

    @abstractmethod
    def decide(
        self,
        *,
        day_state: EmployeeDayState,
        requested: Optional[EventType],
        now: datetime,
        debounce: timedelta,
    ) -> IntentDecision:
        raise NotImplementedError
