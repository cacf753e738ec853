from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import EmployeeProfile, NFCCard


class EmployeeRepository(Protocol):
    """Repository interface for employee profiles.

    Services depend on this protocol, never on a concrete database.
    """

    def get_by_id(self, employee_id: str) -> Optional[EmployeeProfile]:
        raise NotImplementedError

    def find_active_by_code(self, employee_code: str, *, company_id: Optional[str] = None) -> Sequence[EmployeeProfile]:
        """All active employees with this code, optionally limited to one company."""

        raise NotImplementedError

    def find_by_email(self, email: str, *, company_id: str) -> Optional[EmployeeProfile]:
        raise NotImplementedError

    def list_for_company(self, company_id: str) -> Sequence[EmployeeProfile]:
        raise NotImplementedError


class CardRepository(Protocol):
    def get_by_id(self, card_id: str) -> Optional[NFCCard]:
        raise NotImplementedError

    def get_by_uid(self, uid: str) -> Optional[NFCCard]:
        raise NotImplementedError

    def latest_active_for_employee(self, employee_id: str) -> Optional[NFCCard]:
        """Most recently registered active card of the employee."""

        raise NotImplementedError

    def create(self, card: NFCCard) -> str:
        raise NotImplementedError

    def set_active(self, card_id: str, *, is_active: bool) -> bool:
        raise NotImplementedError

    def touch(self, card_id: str, *, used_at: datetime) -> None:
        raise NotImplementedError
