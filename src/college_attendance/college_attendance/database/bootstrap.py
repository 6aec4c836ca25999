from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, List

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

# Quoted literals or a statement terminator; quoted text is skipped as one token.
_TOKEN = re.compile(r"'(?:\\.|[^'\\])*'|\"(?:\\.|[^\"\\])*\"|;")


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a schema file on `;` while ignoring semicolons inside quotes."""
    start = 0
    for match in _TOKEN.finditer(sql):
        if match.group(0) != ";":
            continue
        stmt = sql[start:match.start()].strip()
        start = match.end()
        if stmt:
            yield stmt
    tail = sql[start:].strip()
    if tail:
        yield tail


def _server_connect(target: DBConfig, *, with_database: bool):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _server_connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    """Apply `schema.sql` (CREATE TABLE IF NOT EXISTS, so re-running is harmless).

    Returns the number of statements executed.
    """
    target = DBConfig.from_dict(db_config)
    ensure_database_exists(db_config)

    sql = _strip_comments(_strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8")))

    conn = _server_connect(target, with_database=True)
    executed = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            executed += 1
        conn.commit()
    finally:
        conn.close()

    logger.info("Schema applied to %s (%d statements)", target.database, executed)
    return executed


def list_tables(db_config: dict) -> List[str]:
    target = DBConfig.from_dict(db_config)
    conn = _server_connect(target, with_database=True)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
