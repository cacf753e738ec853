from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError
from .model import ResolvedEmployee
from .repository import CardRepository, EmployeeRepository

logger = logging.getLogger(__name__)

EMPLOYEE_NOT_FOUND = "Employee not found or inactive"


class EmployeeResolver:
    """Maps a tap credential to one active employee and its company.

    Lookup order: an active NFC card UID first, then an active employee code. For a code
    match the employee's most recently registered active card becomes the event's card.
    """

    def __init__(self, employees: EmployeeRepository, cards: CardRepository):
        self._employees = employees
        self._cards = cards

    def resolve_by_credential(self, credential: str, *, company_id: Optional[str] = None) -> ResolvedEmployee:
        credential = require_non_empty(credential, "NFC card ID or employee code")

        card = self._cards.get_by_uid(credential)
        if card and card.is_active and (company_id is None or card.company_id == company_id):
            employee = self._employees.get_by_id(card.employee_id)
            if not employee or not employee.is_active or employee.company_id != card.company_id:
                raise NotFoundError(EMPLOYEE_NOT_FOUND)
            return ResolvedEmployee(employee=employee, card_id=card.card_id)

        matches = list(self._employees.find_active_by_code(credential, company_id=company_id))
        if not matches:
            raise NotFoundError(EMPLOYEE_NOT_FOUND)
        if len(matches) > 1:
            # Same code in several companies and no company scope on the request.
            logger.info("Employee code %r is ambiguous across %d companies", credential, len(matches))
            raise NotFoundError(EMPLOYEE_NOT_FOUND)

        employee = matches[0]
        card = self._cards.latest_active_for_employee(employee.employee_id)
        return ResolvedEmployee(employee=employee, card_id=card.card_id if card else None)
