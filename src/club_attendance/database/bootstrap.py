"""Schema creation and demo data for a fresh MySQL database.

Used by ``scripts/init_db.py`` / ``scripts/seed_db.py`` and, when
``AUTO_INIT_DB`` / ``AUTO_SEED_DB`` are set, by ``create_app``.
"""

from __future__ import annotations

import logging
import re
from contextlib import closing
from pathlib import Path
from typing import Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

DEMO_ACCOUNTS = (
    # full_name, email, password, role, student_code
    ("Core Team Demo", "core@club.local", "core123", "core_team", None),
    ("Teacher Demo", "teacher@club.local", "teacher123", "teacher", None),
    ("Student Demo", "student@club.local", "student123", "student", "STU-0001"),
)

# quoted literals are matched whole so a ';' inside them never splits
_SQL_TOKEN = re.compile(r"""'(?:\\.|''|[^'\\])*'|"(?:\\.|""|[^"\\])*"|`[^`]*`|--[^\n]*|;|[^'"`;-]+|-""")
_SCHEMA_SWITCH = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)


def _connect(config: DBConfig, *, with_database: bool = True):
    return mysql.connector.connect(use_pure=True, **config.connect_kwargs(with_database=with_database))


def split_statements(sql: str) -> Iterator[str]:
    """Yield the statements of a schema file, without ``--`` comments."""

    current: list[str] = []
    for token in _SQL_TOKEN.findall(sql):
        if token.startswith("--"):
            continue
        if token == ";":
            stmt = "".join(current).strip()
            current = []
            if stmt:
                yield stmt
        else:
            current.append(token)
    stmt = "".join(current).strip()
    if stmt:
        yield stmt


def schema_statements(sql: str) -> list[str]:
    # database name comes from DB_CONFIG, not from the file
    return [stmt for stmt in split_statements(sql) if not _SCHEMA_SWITCH.match(stmt)]


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_mapping(db_config)
    with closing(_connect(config, with_database=False)) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    config = DBConfig.from_mapping(db_config)
    ensure_database_exists(db_config)

    statements = schema_statements(Path(schema_path).read_text(encoding="utf-8"))
    with closing(_connect(config)) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    logger.info("Applied %d schema statements to %s@%s/%s", len(statements), config.user, config.host, config.database)


def ensure_demo_users(db_config: dict) -> None:
    """Insert the demo accounts, or reset them to their known passwords."""

    with closing(_connect(DBConfig.from_mapping(db_config))) as conn:
        cur = conn.cursor()
        for full_name, email, password, role, student_code in DEMO_ACCOUNTS:
            cur.execute(
                """
                INSERT INTO users (full_name, email, password_hash, role, student_code)
                VALUES (%s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    full_name = VALUES(full_name),
                    password_hash = VALUES(password_hash),
                    role = VALUES(role),
                    student_code = VALUES(student_code),
                    is_active = 1
                """,
                (full_name, email, generate_password_hash(password), role, student_code),
            )
        conn.commit()
    logger.info("Demo accounts ready (%d)", len(DEMO_ACCOUNTS))


def list_tables(db_config: dict) -> list[str]:
    with closing(_connect(DBConfig.from_mapping(db_config))) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
