from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    shared = conn_factory.active_connection()
    if shared is not None:
        # Commit/rollback belongs to the enclosing transaction.
        cur = shared.cursor(dictionary=dictionary)
        try:
            yield shared, cur
        finally:
            cur.close()
        return

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


def is_duplicate_key(exc: mysql.connector.Error) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def as_bool(value: Any) -> bool:
    """MySQL returns TINYINT(1) columns as 0/1."""
    return bool(int(value)) if value is not None else False


def violated_key(exc: mysql.connector.Error) -> Optional[str]:
    """Name of the unique key a duplicate-entry error refers to, if it can be read."""
    if not is_duplicate_key(exc):
        return None
    message = str(getattr(exc, "msg", "") or exc)
    marker = "for key '"
    if marker not in message:
        return None
    # MySQL 8 prefixes the key with the table name: 'attendance_records.uq_...'
    return message.split(marker, 1)[1].rstrip("'").split(".")[-1]
