from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class EmployeeProfile:
    """Domain entity: an employee belonging to exactly one company."""

    employee_id: str
    company_id: str
    employee_code: str
    name: str
    email: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class NFCCard:
    """Credential bound to one employee. The UID is unique across all companies."""

    card_id: str
    uid: str
    employee_id: str
    company_id: str
    is_active: bool
    registered_at: datetime
    registered_by: Optional[str] = None
    last_used_at: Optional[datetime] = None


@dataclass(frozen=True)
class ResolvedEmployee:
    """Result of credential lookup: the employee and the card to reference on the event."""

    employee: EmployeeProfile
    card_id: Optional[str]

    @property
    def employee_id(self) -> str:
        return self.employee.employee_id

    @property
    def company_id(self) -> str:
        return self.employee.company_id


@dataclass(frozen=True)
class Actor:
    """Request context of the signed-in user, passed explicitly into services."""

    user_id: str
    name: str
    role: Role
    email: Optional[str] = None
    company_id: Optional[str] = None

    @property
    def is_manager(self) -> bool:
        return self.role in {Role.EMPLOYER, Role.ADMIN}

    @classmethod
    def from_session(cls, data: Mapping[str, Any]) -> Optional["Actor"]:
        """Build the actor from the keys the auth layer stores in the Flask session."""
        if not data.get("user_id"):
            return None
        try:
            role = Role(data.get("role"))
        except ValueError:
            return None
        return cls(
            user_id=str(data["user_id"]),
            name=str(data.get("name") or ""),
            role=role,
            email=data.get("email"),
            company_id=data.get("company_id"),
        )
