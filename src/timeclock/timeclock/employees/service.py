from __future__ import annotations

import logging
import uuid
from datetime import datetime

from ..common.datetime_utils import utc_now
from ..common.validators import require_non_empty
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Actor, NFCCard
from .repository import CardRepository, EmployeeRepository

logger = logging.getLogger(__name__)


class CardService:
    """Issue and revoke NFC cards. Only employers and admins of the owning company may do so."""

    def __init__(self, cards: CardRepository, employees: EmployeeRepository):
        self._cards = cards
        self._employees = employees

    @staticmethod
    def _require_manager(actor: Actor) -> str:
        if not actor.is_manager:
            raise AuthorizationError("Unauthorized")
        if not actor.company_id:
            raise ValidationError("No company associated with your account.")
        return actor.company_id

    def register_card(self, actor: Actor, *, uid: str, employee_id: str, now: datetime | None = None) -> NFCCard:
        company_id = self._require_manager(actor)
        uid = require_non_empty(uid, "NFC card UID")
        employee_id = require_non_empty(employee_id, "Employee")

        if self._cards.get_by_uid(uid):
            raise ValidationError("This NFC card is already registered")

        employee = self._employees.get_by_id(employee_id)
        if not employee or employee.company_id != company_id or not employee.is_active:
            raise NotFoundError("Employee not found or is not active")

        card = NFCCard(
            card_id=uuid.uuid4().hex,
            uid=uid,
            employee_id=employee.employee_id,
            company_id=company_id,
            is_active=True,
            registered_at=now or utc_now(),
            registered_by=actor.user_id,
        )
        self._cards.create(card)
        logger.info("Registered NFC card %s for employee %s", card.card_id, employee.employee_id)
        return card

    def deactivate_card(self, actor: Actor, *, card_id: str) -> None:
        company_id = self._require_manager(actor)

        card = self._cards.get_by_id(card_id)
        if not card or card.company_id != company_id:
            raise NotFoundError("NFC card not found")

        if not self._cards.set_active(card.card_id, is_active=False):
            raise ValidationError("Failed to deactivate NFC card")
        logger.info("Deactivated NFC card %s", card.card_id)
