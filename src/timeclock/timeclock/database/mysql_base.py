from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit when the block exits cleanly, else roll back."""
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(count: int) -> str:
    return ",".join(["%s"] * count)


def fetch_locked(cur, sql: str, params: tuple) -> Optional[Dict[str, Any]]:
    """Run a single-row SELECT with FOR UPDATE inside the cursor's transaction.

    The row stays locked until `db_cursor` commits or rolls back. A missing row is not
    locked, so callers inserting it must still handle a duplicate-key IntegrityError.
    """
    cur.execute(f"{sql.rstrip()} FOR UPDATE", params)
    return fetchone(cur)
