"""Schema/seed helpers used by ``create_app`` and the scripts in ``scripts/``."""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "demo12345"

# (full_name, email, role)
DEMO_USERS = (
    ("Grace Overseer", "overseer@workforce.local", Role.GENERAL_OVERSEER),
    ("Uma Useradmin", "useradmin@workforce.local", Role.USER_ADMIN),
    ("Rita Reports", "reportadmin@workforce.local", Role.REPORT_ADMIN),
    ("Fiona Finance", "finance@workforce.local", Role.FINANCE_HR_ADMIN),
    ("Ivan Invest", "investadmin@workforce.local", Role.INVESTMENT_ADMIN),
    ("Derek Head", "depthead@workforce.local", Role.DEPARTMENT_HEAD),
    ("Tina Lead", "teamlead@workforce.local", Role.TEAM_LEAD),
    ("Eddie Employee", "employee@workforce.local", Role.EMPLOYEE),
    ("Tom Trader", "trader@workforce.local", Role.TRADER),
)


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "workforce_hub")),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # The target database comes from DB_CONFIG, not from the SQL file.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ``;`` outside quoted strings."""
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


def _run_script(db_config: dict, path: str | Path) -> None:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, schema_path)
    logger.info("Applied schema %s", Path(schema_path).name)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)
    logger.info("Applied seed %s", Path(seed_path).name)


def ensure_demo_users(db_config: dict) -> None:
    """Upsert one demo account per role, all sharing ``DEMO_PASSWORD``."""
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor(dictionary=True)
        password_hash = generate_password_hash(DEMO_PASSWORD)
        for full_name, email, role in DEMO_USERS:
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    "UPDATE users SET full_name=%s, password_hash=%s, role=%s, is_active=1 WHERE email=%s",
                    (full_name, password_hash, role.value, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (public_id, full_name, email, password_hash, role)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (str(uuid.uuid4()), full_name, email, password_hash, role.value),
                )

        # Employees and traders report to the demo team lead.
        cur.execute(
            """
            UPDATE users u
            JOIN users lead ON lead.email=%s
            SET u.team_lead_id = lead.user_id
            WHERE u.role IN (%s, %s)
            """,
            ("teamlead@workforce.local", Role.EMPLOYEE.value, Role.TRADER.value),
        )
        conn.commit()
    finally:
        conn.close()
    logger.info("Demo users ready (%d accounts)", len(DEMO_USERS))


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
