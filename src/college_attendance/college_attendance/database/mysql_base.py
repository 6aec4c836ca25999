from __future__ import annotations

from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional, Sequence

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection):
    """Dictionary cursor on a fresh connection; commits on exit, rolls back on error."""
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=True)
        try:
            yield cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def in_clause(values: Sequence[Any]) -> str:
    """Placeholder list for `IN (...)`; callers must not pass an empty sequence."""
    return ", ".join(["%s"] * len(values))


def normalize_mysql_time(value: Any) -> str:
    """TIME column value as the "HH:MM" string periods and schedules carry.

    mysql-connector returns TIME as timedelta; other drivers hand back time or str.
    """
    if isinstance(value, timedelta):
        minutes = int(value.total_seconds()) % 86400 // 60
        return f"{minutes // 60:02d}:{minutes % 60:02d}"
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, str):
        hours, minutes = value.strip().split(":")[:2]
        return f"{int(hours):02d}:{int(minutes):02d}"
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
