"""Local SQLite query client.

Implements the same select/insert/update/delete/auth surface as the hosted
REST client so the app runs without network access.  Ownership checks on
update/delete mirror the row-level policies of the hosted store: a user can
only change rows they own.
"""

from __future__ import annotations

import datetime as dt
import logging
import secrets
import sqlite3
import uuid
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from werkzeug.security import check_password_hash, generate_password_hash

from . import config
from .errors import AuthError, BackendError, ConflictError, NotFoundError, UNIQUE_VIOLATION
from .models import BUDGETS, GROUP_MEMBERS, GROUPS, TRANSACTIONS, USERS
from .session import SessionContext

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL,
    full_name TEXT,
    created_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_users_email ON users (email);

CREATE TABLE IF NOT EXISTS credentials (
    user_id TEXT PRIMARY KEY REFERENCES users (id) ON DELETE CASCADE,
    password_hash TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    group_id TEXT,
    amount TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
    category TEXT NOT NULL,
    date TEXT NOT NULL,
    notes TEXT,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_txn_user_date ON transactions (user_id, date);
CREATE INDEX IF NOT EXISTS ix_txn_group ON transactions (group_id);

CREATE TABLE IF NOT EXISTS budgets (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    category TEXT NOT NULL,
    amount TEXT NOT NULL,
    month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
    year INTEGER NOT NULL,
    created_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_budget_period
ON budgets (user_id, category, month, year);

CREATE TABLE IF NOT EXISTS groups (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_by TEXT NOT NULL,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS group_members (
    id TEXT PRIMARY KEY,
    group_id TEXT NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
    user_id TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'member',
    created_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_group_member ON group_members (group_id, user_id);
"""

COLUMNS: Dict[str, frozenset] = {
    USERS: frozenset({"id", "email", "full_name", "created_at"}),
    TRANSACTIONS: frozenset({
        "id", "user_id", "group_id", "amount", "type", "category", "date", "notes", "created_at",
    }),
    BUDGETS: frozenset({"id", "user_id", "category", "amount", "month", "year", "created_at"}),
    GROUPS: frozenset({"id", "name", "created_by", "created_at"}),
    GROUP_MEMBERS: frozenset({"id", "group_id", "user_id", "role", "created_at"}),
}

# Column holding the owning user for tables with row ownership
OWNER_COLUMNS = {TRANSACTIONS: "user_id", BUDGETS: "user_id", GROUPS: "created_by"}


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def _sql_value(value: Any) -> Any:
    """Convert Python values into SQLite-friendly ones."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    return value


@contextmanager
def connect(db_path: Union[str, Path]) -> Iterator[sqlite3.Connection]:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def _translate(exc: sqlite3.Error, table: str) -> BackendError:
    message = str(exc)
    if isinstance(exc, sqlite3.IntegrityError) and "UNIQUE" in message:
        return ConflictError(f"duplicate key value violates unique constraint on {table}")
    return BackendError(message)


class SqliteClient:
    """Query client backed by a local SQLite file."""

    def __init__(self, db_path: Union[str, Path, None] = None):
        self.db_path = Path(db_path) if db_path is not None else config.DB_PATH

    def init_db(self) -> None:
        with connect(self.db_path) as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    # ------------------------------------------------------------------
    # Generic CRUD
    # ------------------------------------------------------------------
    def _check_columns(self, table: str, columns) -> None:
        known = COLUMNS.get(table)
        if known is None:
            raise BackendError(f"Unknown table: {table}")
        unknown = set(columns) - known
        if unknown:
            raise BackendError(f"Unknown column(s) for {table}: {', '.join(sorted(unknown))}")

    def select(
        self,
        session: Optional[SessionContext],
        table: str,
        *,
        eq: Optional[Mapping[str, Any]] = None,
        gte: Optional[Mapping[str, Any]] = None,
        lte: Optional[Mapping[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        eq, gte, lte = dict(eq or {}), dict(gte or {}), dict(lte or {})
        self._check_columns(table, [*eq, *gte, *lte, *([order] if order else [])])

        where: List[str] = []
        params: List[Any] = []
        for column, value in eq.items():
            if value is None:
                where.append(f"{column} IS NULL")
            else:
                where.append(f"{column} = ?")
                params.append(_sql_value(value))
        for column, value in gte.items():
            where.append(f"{column} >= ?")
            params.append(_sql_value(value))
        for column, value in lte.items():
            where.append(f"{column} <= ?")
            params.append(_sql_value(value))

        sql = f"SELECT * FROM {table}"
        if where:
            sql += " WHERE " + " AND ".join(where)
        if order:
            direction = "DESC" if descending else "ASC"
            sql += f" ORDER BY {order} {direction}, created_at {direction}"

        try:
            with connect(self.db_path) as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise _translate(exc, table) from exc
        return [dict(row) for row in rows]

    def _fetch_by_id(self, conn: sqlite3.Connection, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
        return dict(row) if row else None

    def insert(self, session: Optional[SessionContext], table: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        record = {k: _sql_value(v) for k, v in values.items()}
        record.setdefault("id", str(uuid.uuid4()))
        record.setdefault("created_at", _now())
        self._check_columns(table, record)

        columns = list(record)
        sql = "INSERT INTO {} ({}) VALUES ({})".format(
            table, ", ".join(columns), ", ".join("?" for _ in columns)
        )
        try:
            with connect(self.db_path) as conn:
                conn.execute(sql, [record[c] for c in columns])
                conn.commit()
                return self._fetch_by_id(conn, table, record["id"])
        except sqlite3.Error as exc:
            raise _translate(exc, table) from exc

    def _owner_clause(self, session: Optional[SessionContext], table: str):
        owner = OWNER_COLUMNS.get(table)
        if owner and session is not None:
            return f" AND {owner} = ?", [session.user_id]
        return "", []

    def update(
        self,
        session: Optional[SessionContext],
        table: str,
        row_id: str,
        values: Mapping[str, Any],
    ) -> Dict[str, Any]:
        record = {k: _sql_value(v) for k, v in values.items() if k not in {"id", "created_at"}}
        self._check_columns(table, record)
        if not record:
            raise BackendError("Nothing to update")

        owner_sql, owner_params = self._owner_clause(session, table)
        assignments = ", ".join(f"{column} = ?" for column in record)
        sql = f"UPDATE {table} SET {assignments} WHERE id = ?{owner_sql}"
        params = [*record.values(), row_id, *owner_params]
        try:
            with connect(self.db_path) as conn:
                cursor = conn.execute(sql, params)
                conn.commit()
                if cursor.rowcount == 0:
                    raise NotFoundError(f"No {table} row with id {row_id}")
                return self._fetch_by_id(conn, table, row_id)
        except sqlite3.Error as exc:
            raise _translate(exc, table) from exc

    def delete(self, session: Optional[SessionContext], table: str, row_id: str) -> None:
        self._check_columns(table, [])
        owner_sql, owner_params = self._owner_clause(session, table)
        try:
            with connect(self.db_path) as conn:
                cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?{owner_sql}", [row_id, *owner_params])
                conn.commit()
        except sqlite3.Error as exc:
            raise _translate(exc, table) from exc
        if cursor.rowcount == 0:
            raise NotFoundError(f"No {table} row with id {row_id}")

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> SessionContext:
        user_id = str(uuid.uuid4())
        try:
            with connect(self.db_path) as conn:
                conn.execute(
                    "INSERT INTO users (id, email, full_name, created_at) VALUES (?, ?, ?, ?)",
                    (user_id, email, full_name, _now()),
                )
                conn.execute(
                    "INSERT INTO credentials (user_id, password_hash) VALUES (?, ?)",
                    (user_id, generate_password_hash(password)),
                )
                conn.commit()
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" in str(exc):
                raise ConflictError("User already registered", code=UNIQUE_VIOLATION) from exc
            raise BackendError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise _translate(exc, USERS) from exc
        logger.info("Registered local user %s", email)
        return SessionContext(
            user_id=user_id,
            email=email,
            access_token=secrets.token_urlsafe(24),
            full_name=full_name,
        )

    def sign_in(self, email: str, password: str) -> SessionContext:
        try:
            with connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT u.id, u.email, u.full_name, c.password_hash "
                    "FROM users u JOIN credentials c ON c.user_id = u.id WHERE u.email = ?",
                    (email,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise _translate(exc, USERS) from exc
        if row is None or not check_password_hash(row["password_hash"], password):
            raise AuthError("Invalid login credentials")
        logger.info("Signed in local user %s", email)
        return SessionContext(
            user_id=row["id"],
            email=row["email"],
            access_token=secrets.token_urlsafe(24),
            full_name=row["full_name"],
        )

    def sign_out(self, session: SessionContext) -> None:
        logger.info("Signed out local user %s", session.email)
