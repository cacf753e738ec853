from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import EmployeeProfile
from .repository import EmployeeRepository

_COLUMNS = "employee_id, company_id, employee_code, name, email, is_active"


def _to_profile(row: dict) -> EmployeeProfile:
    return EmployeeProfile(
        employee_id=str(row["employee_id"]),
        company_id=str(row["company_id"]),
        employee_code=row["employee_code"],
        name=row["name"],
        email=row.get("email"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: str) -> Optional[EmployeeProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employee_profiles WHERE employee_id=%s", (employee_id,))
            row = fetchone(cur)
            return _to_profile(row) if row else None

    def find_active_by_code(self, employee_code: str, *, company_id: Optional[str] = None) -> Sequence[EmployeeProfile]:
        sql = f"SELECT {_COLUMNS} FROM employee_profiles WHERE employee_code=%s AND is_active=1"
        params: list = [employee_code]
        if company_id:
            sql += " AND company_id=%s"
            params.append(company_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_profile(r) for r in fetchall(cur)]

    def find_by_email(self, email: str, *, company_id: str) -> Optional[EmployeeProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employee_profiles WHERE email=%s AND company_id=%s LIMIT 1",
                (email, company_id),
            )
            row = fetchone(cur)
            return _to_profile(row) if row else None

    def list_for_company(self, company_id: str) -> Sequence[EmployeeProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employee_profiles WHERE company_id=%s ORDER BY name",
                (company_id,),
            )
            return [_to_profile(r) for r in fetchall(cur)]
