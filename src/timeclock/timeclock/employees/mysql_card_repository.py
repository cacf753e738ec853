from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import NFCCard
from .repository import CardRepository

_COLUMNS = "card_id, uid, employee_id, company_id, is_active, registered_by, registered_at, last_used_at"


def _to_card(row: dict) -> NFCCard:
    return NFCCard(
        card_id=str(row["card_id"]),
        uid=row["uid"],
        employee_id=str(row["employee_id"]),
        company_id=str(row["company_id"]),
        is_active=bool(row["is_active"]),
        registered_at=row["registered_at"],
        registered_by=row.get("registered_by"),
        last_used_at=row.get("last_used_at"),
    )


class MySQLCardRepository(CardRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, card_id: str) -> Optional[NFCCard]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM nfc_cards WHERE card_id=%s", (card_id,))
            row = fetchone(cur)
            return _to_card(row) if row else None

    def get_by_uid(self, uid: str) -> Optional[NFCCard]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM nfc_cards WHERE uid=%s", (uid,))
            row = fetchone(cur)
            return _to_card(row) if row else None

    def latest_active_for_employee(self, employee_id: str) -> Optional[NFCCard]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM nfc_cards
                WHERE employee_id=%s AND is_active=1
                ORDER BY registered_at DESC
                LIMIT 1
                """,
                (employee_id,),
            )
            row = fetchone(cur)
            return _to_card(row) if row else None

    def create(self, card: NFCCard) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO nfc_cards(card_id, uid, employee_id, company_id, is_active, registered_by, registered_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    card.card_id,
                    card.uid,
                    card.employee_id,
                    card.company_id,
                    1 if card.is_active else 0,
                    card.registered_by,
                    card.registered_at,
                ),
            )
            return card.card_id

    def set_active(self, card_id: str, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE nfc_cards SET is_active=%s WHERE card_id=%s", (1 if is_active else 0, card_id))
            return cur.rowcount > 0

    def touch(self, card_id: str, *, used_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE nfc_cards SET last_used_at=%s WHERE card_id=%s", (used_at, card_id))
