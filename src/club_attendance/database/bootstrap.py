from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes).
    buf: list[str] = []
    quote: Optional[str] = None
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch in ("'", '"'):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
            buf.append(ch)
            continue

        if ch == ";" and quote is None:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_mapping(db_config)
    conn = DatabaseConnection(config).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> int:
    """Create the database and every table in ``schema_path``.

    Returns the number of statements executed.
    """
    ensure_database_exists(db_config)

    sql = _strip_line_comments(_strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8")))
    statements = list(_iter_sql_statements(sql))

    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()

    logger.info("Applied %d schema statements from %s", len(statements), schema_path)
    return len(statements)


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def _has_column(cur, schema: str, table: str, column: str) -> bool:
    cur.execute(
        """
        SELECT COUNT(*) FROM information_schema.COLUMNS
        WHERE TABLE_SCHEMA=%s AND TABLE_NAME=%s AND COLUMN_NAME=%s
        """,
        (schema, table, column),
    )
    (n,) = cur.fetchone()
    return bool(n)


def migrate_legacy_attendance_status(db_config: dict) -> int:
    """One-off migration of the legacy boolean ``is_present`` column.

    Older databases stored attendance as ``is_present`` only. ``status`` is
    added as a nullable column when missing, filled from ``is_present`` for
    every legacy row, made NOT NULL, and ``is_present`` is dropped, so reads
    only ever see ``status``. Returns the number of rows updated (0 when
    already migrated).
    """
    config = DBConfig.from_mapping(db_config)
    conn = DatabaseConnection(config).connect()
    try:
        cur = conn.cursor()
        if not _has_column(cur, config.database, "attendance", "is_present"):
            logger.info("attendance.is_present not found; nothing to migrate")
            return 0

        if not _has_column(cur, config.database, "attendance", "status"):
            cur.execute("ALTER TABLE attendance ADD COLUMN status ENUM('PRESENT','ABSENT','EXCUSED') NULL")
        else:
            cur.execute("ALTER TABLE attendance MODIFY COLUMN status ENUM('PRESENT','ABSENT','EXCUSED') NULL")

        cur.execute(
            """
            UPDATE attendance
            SET status = CASE WHEN is_present THEN 'PRESENT' ELSE 'ABSENT' END
            WHERE is_present IS NOT NULL
            """
        )
        updated = cur.rowcount
        cur.execute("UPDATE attendance SET status='ABSENT' WHERE status IS NULL")
        conn.commit()

        cur.execute("ALTER TABLE attendance MODIFY COLUMN status ENUM('PRESENT','ABSENT','EXCUSED') NOT NULL")
        cur.execute("ALTER TABLE attendance DROP COLUMN is_present")
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    logger.info("Migrated %d legacy attendance rows to status", updated)
    return updated
