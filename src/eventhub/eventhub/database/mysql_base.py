from __future__ import annotations

import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional

from mysql.connector import errorcode
from mysql.connector import errors as mysql_errors

from ..core.exceptions import Unavailable

logger = logging.getLogger(__name__)

# Connector errors that mean "the server is not reachable", as opposed to a bad statement.
_CONNECTIVITY_ERRORS = (mysql_errors.InterfaceError, mysql_errors.OperationalError)


def _open(conn_factory):
    try:
        return conn_factory.connect()
    except _CONNECTIVITY_ERRORS as e:
        logger.error("Database connection failed: %s", e)
        raise Unavailable("Database is unavailable") from e


@contextmanager
def db_cursor(conn_factory, *, dictionary: bool = True):
    """Yield ``(conn, cursor)`` inside one transaction.

    Commits when the block exits normally, rolls back on any exception.
    Connectivity failures surface as ``Unavailable``.
    """

    conn = _open(conn_factory)
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except _CONNECTIVITY_ERRORS as e:
        _safe_rollback(conn)
        logger.error("Database connection lost: %s", e)
        raise Unavailable("Database is unavailable") from e
    except Exception:
        _safe_rollback(conn)
        raise
    finally:
        conn.close()


def _safe_rollback(conn) -> None:
    try:
        conn.rollback()
    except _CONNECTIVITY_ERRORS:
        logger.warning("Rollback skipped, connection already gone")


def is_duplicate_key(error: Exception) -> bool:
    """True when ``error`` is a UNIQUE/PRIMARY KEY violation."""
    return isinstance(error, mysql_errors.IntegrityError) and getattr(error, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def as_decimal(value: Any) -> Decimal:
    """Normalize DECIMAL/SUM() results (Decimal, float, None) to Decimal."""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
