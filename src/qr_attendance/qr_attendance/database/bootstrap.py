from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[4] / "database"
SCHEMA_PATH = DATABASE_DIR / "schema.sql"
SEED_PATH = DATABASE_DIR / "seed.sql"


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_sql_noise(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name; drop full-line comments.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?m)^\s*--.*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside of quoted strings."""

    buf: list[str] = []
    quote = ""
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = ""
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(target: DBConfig, path: str | Path) -> int:
    sql = _strip_sql_noise(Path(path).read_text(encoding="utf-8"))
    conn = _connect(target)
    count = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(target: DBConfig) -> None:
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(target: DBConfig, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(target)
    count = _run_script(target, schema_path)
    logger.info("Applied schema %s (%s statements)", schema_path, count)


def apply_seed_sql(target: DBConfig, *, seed_path: str | Path = SEED_PATH) -> None:
    count = _run_script(target, seed_path)
    logger.info("Applied seed %s (%s statements)", seed_path, count)


def list_tables(target: DBConfig) -> list[str]:
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
