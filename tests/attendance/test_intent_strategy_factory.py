from datetime import datetime, timedelta

from src.timeclock.timeclock.attendance.factory import IntentStrategyFactory
from src.timeclock.timeclock.attendance.model import EmployeeDayState
from src.timeclock.timeclock.attendance.strategies.auto_strategy import AutoDetectStrategy
from src.timeclock.timeclock.attendance.strategies.explicit_strategy import ExplicitStrategy
from src.timeclock.timeclock.core.enums import AttendanceState, ClockMode, RejectionKind


def test_factory_auto_mode_uses_auto_detect():
    factory = IntentStrategyFactory()
    assert isinstance(factory.for_mode(ClockMode.AUTO), AutoDetectStrategy)


def test_factory_explicit_mode_uses_transition_table():
    factory = IntentStrategyFactory()
    assert isinstance(factory.for_mode(ClockMode.EXPLICIT), ExplicitStrategy)


def test_explicit_strategy_requires_event_type():
    decision = ExplicitStrategy().decide(
        day_state=EmployeeDayState(state=AttendanceState.CLOCKED_OUT),
        requested=None,
        now=datetime(2026, 2, 2, 9, 0, 0),
        debounce=timedelta(minutes=5),
    )
    assert decision.reason == "Event type is required"
    assert decision.kind == RejectionKind.VALIDATION
