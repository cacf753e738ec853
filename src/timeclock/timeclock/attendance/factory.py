from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import ClockMode
from .strategies.auto_strategy import AutoDetectStrategy
from .strategies.base import IntentStrategy
from .strategies.explicit_strategy import ExplicitStrategy


@dataclass
class IntentStrategyFactory:
    """Factory Pattern: pick the intent strategy for the calling convention."""

    def for_mode(self, mode: ClockMode) -> IntentStrategy:
        if mode == ClockMode.AUTO:
            return AutoDetectStrategy()
        return ExplicitStrategy()
