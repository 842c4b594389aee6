from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.constants import MYSQL_DUPLICATE_KEY_ERRNO, MYSQL_FOREIGN_KEY_ERRNO
from ..core.exceptions import DomainError, DuplicateKeyError, MissingReferenceError, StorageError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def translate_mysql_error(exc: mysql.connector.Error) -> DomainError:
    """Map a driver error onto the domain taxonomy.

    Unique-key violations become DuplicateKeyError so services can fold them
    into an idempotent outcome. Foreign-key violations become
    MissingReferenceError: retrying cannot fix them. Everything else is an
    opaque StorageError.
    """

    if isinstance(exc, mysql.connector.IntegrityError) and exc.errno == MYSQL_DUPLICATE_KEY_ERRNO:
        return DuplicateKeyError()
    if isinstance(exc, mysql.connector.IntegrityError) and exc.errno == MYSQL_FOREIGN_KEY_ERRNO:
        return MissingReferenceError()
    logger.error("MySQL error %s: %s", exc.errno, exc.msg)
    return StorageError()


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise translate_mysql_error(e) from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise translate_mysql_error(e) from e
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


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Normalize MySQL TIME values across connector implementations.

    mysql-connector can return TIME as:
    - datetime.time
    - datetime.timedelta
    - string (e.g. '08:30:00')
    """

    if value is None:
        return None

    if isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        return time(hour=hours, minute=minutes, second=seconds)

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
        return time(hour=hours, minute=minutes, second=seconds)

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
