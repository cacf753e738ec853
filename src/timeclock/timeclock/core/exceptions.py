from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced employee, card or record does not exist in scope."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class StaleEventError(DomainError):
    """Raised by the event store when the employee's last event moved under a writer."""

    def __init__(self, employee_id: str, expected: Optional[str], actual: Optional[str]):
        super().__init__(f"Stale attendance head for employee {employee_id}: expected {expected!r}, found {actual!r}")
        self.employee_id = employee_id
        self.expected = expected
        self.actual = actual
