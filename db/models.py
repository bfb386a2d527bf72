"""
db/models.py — Local SQLite rendition of the portfolio tables
==============================================================

Design principles:
  1. Same six tables and column names as the hosted store
  2. No foreign keys: projects reference categories by name only
  3. uuid4 text ids, ISO-8601 UTC timestamps
  4. SQLite backing store - portable, zero infra, used for dev and tests

Tables:
  profiles            → singleton identity row (name, bio, contact, logo)
  projects            → portfolio work; images stored as a JSON array
  social_links        → ordered by order_index
  experiences         → education | work, ordered by start_date
  skills              → grouped by free-text category, level 1-5
  project_categories  → ordered by order_index
"""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from db.client import Store, StoreError

DB_PATH = Path(__file__).parent / "portfolio.db"


# --- SCHEMA DDL ---

SCHEMA = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS profiles (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL DEFAULT '',
    title           TEXT,
    bio             TEXT,
    email           TEXT,
    phone           TEXT,
    location        TEXT,
    avatar_url      TEXT,
    cv_url          TEXT,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS projects (
    id              TEXT PRIMARY KEY,
    title           TEXT NOT NULL,
    description     TEXT,
    category        TEXT,                   -- free text, matches project_categories.name by convention
    year            INTEGER,
    client          TEXT,
    location        TEXT,
    area            TEXT,
    status          TEXT DEFAULT 'completed',  -- completed | ongoing | concept
    featured        INTEGER DEFAULT 0,
    images          TEXT DEFAULT '[]',      -- JSON: [{"url": ..., "title": ...}]
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_projects_category ON projects(category);
CREATE INDEX IF NOT EXISTS idx_projects_featured ON projects(featured);

CREATE TABLE IF NOT EXISTS social_links (
    id              TEXT PRIMARY KEY,
    platform        TEXT NOT NULL,
    url             TEXT NOT NULL,
    icon            TEXT,
    order_index     INTEGER DEFAULT 0,
    created_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS experiences (
    id              TEXT PRIMARY KEY,
    type            TEXT NOT NULL DEFAULT 'education',  -- education | work
    title           TEXT NOT NULL,
    institution     TEXT,
    location        TEXT,
    start_date      TEXT,
    end_date        TEXT,                   -- null = ongoing
    "current"       INTEGER DEFAULT 0,
    description     TEXT,
    order_index     INTEGER DEFAULT 0,
    created_at      TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_experiences_dates ON experiences(start_date);

CREATE TABLE IF NOT EXISTS skills (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL,
    category        TEXT,
    level           INTEGER DEFAULT 3,
    order_index     INTEGER DEFAULT 0,
    created_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS project_categories (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL,
    description     TEXT,
    color           TEXT DEFAULT '#8B5CF6',
    order_index     INTEGER DEFAULT 0,
    created_at      TEXT NOT NULL
);
"""

JSON_COLUMNS = {"projects": {"images"}}
BOOL_COLUMNS = {"projects": {"featured"}, "experiences": {"current"}}
TIMESTAMPED = {"profiles", "projects"}  # tables with an updated_at column


# --- DB CONNECTION ---

def get_db(path: Path = DB_PATH) -> sqlite3.Connection:
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def init_db(path: Path = DB_PATH):
    """Initialize database schema and run any pending column migrations."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_db(path)
    conn.executescript(SCHEMA)
    _migrate_columns(conn)
    conn.commit()
    conn.close()


def _migrate_columns(conn: sqlite3.Connection) -> None:
    """
    Safely add columns introduced after the first schema without destroying
    data. SQLite raises OperationalError when the column already exists.
    """
    migrations = [
        # profiles: hero image and navbar logo configuration
        "ALTER TABLE profiles ADD COLUMN hero_image_url TEXT",
        "ALTER TABLE profiles ADD COLUMN logo_type TEXT DEFAULT 'text'",
        "ALTER TABLE profiles ADD COLUMN logo_text TEXT",
        "ALTER TABLE profiles ADD COLUMN logo_icon TEXT DEFAULT 'User'",
    ]
    for stmt in migrations:
        try:
            conn.execute(stmt)
        except sqlite3.OperationalError:
            pass  # Column already exists


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


# --- STORE ---

class SqliteStore(Store):
    """Store implementation over a local SQLite file with the hosted schema."""

    def __init__(self, path: Path | str = DB_PATH):
        self.path = Path(path)
        init_db(self.path)
        self._columns: dict[str, set[str]] = {}

    def _connect(self) -> sqlite3.Connection:
        return get_db(self.path)

    def _table_columns(self, conn: sqlite3.Connection, table: str) -> set[str]:
        self._check_table(table)
        if table not in self._columns:
            rows = conn.execute(f'PRAGMA table_info("{table}")').fetchall()
            self._columns[table] = {r["name"] for r in rows}
        return self._columns[table]

    def _check_columns(self, conn, table: str, names) -> None:
        unknown = set(names) - self._table_columns(conn, table)
        if unknown:
            raise StoreError(f"Unknown column(s) for {table}: {', '.join(sorted(unknown))}")

    def _encode(self, table: str, row: dict) -> dict:
        out = {}
        for key, value in row.items():
            if key in JSON_COLUMNS.get(table, ()):
                value = json.dumps(value if value is not None else [])
            elif key in BOOL_COLUMNS.get(table, ()):
                value = 1 if value else 0
            out[key] = value
        return out

    def _decode(self, table: str, row: sqlite3.Row) -> dict:
        out = dict(row)
        for key in JSON_COLUMNS.get(table, ()):
            if key in out:
                out[key] = json.loads(out[key]) if out[key] else []
        for key in BOOL_COLUMNS.get(table, ()):
            if key in out:
                out[key] = bool(out[key])
        return out

    def _where(self, table: str, eq: Optional[dict]) -> tuple[str, list]:
        if not eq:
            return "", []
        encoded = self._encode(table, eq)
        clause = " AND ".join(f'"{col}" = ?' for col in encoded)
        return f" WHERE {clause}", list(encoded.values())

    def select(self, table, eq=None, order=None, ascending=True, limit=None):
        conn = self._connect()
        try:
            self._check_columns(conn, table, list(eq or {}) + ([order] if order else []))
            where, params = self._where(table, eq)
            sql = f'SELECT * FROM "{table}"{where}'
            if order:
                sql += f' ORDER BY "{order}" {"ASC" if ascending else "DESC"}'
            if limit:
                sql += " LIMIT ?"
                params.append(int(limit))
            rows = conn.execute(sql, params).fetchall()
            return [self._decode(table, r) for r in rows]
        except sqlite3.Error as e:
            raise StoreError(f"SELECT {table} failed: {e}") from e
        finally:
            conn.close()

    def select_single(self, table, eq=None):
        rows = self.select(table, eq=eq, limit=2)
        if len(rows) != 1:
            raise StoreError(f"Expected a single {table} row, found {len(rows)}")
        return rows[0]

    def _fetch_by_id(self, conn, table: str, row_id: str) -> Optional[dict]:
        row = conn.execute(f'SELECT * FROM "{table}" WHERE id = ?', (row_id,)).fetchone()
        return self._decode(table, row) if row else None

    def insert(self, table, row):
        conn = self._connect()
        try:
            data = {k: v for k, v in row.items() if k not in ("id", "created_at", "updated_at")}
            data["id"] = row.get("id") or new_id()
            data["created_at"] = now_iso()
            if table in TIMESTAMPED:
                data["updated_at"] = data["created_at"]
            self._check_columns(conn, table, data)
            data = self._encode(table, data)
            cols = ", ".join(f'"{c}"' for c in data)
            marks = ", ".join("?" for _ in data)
            conn.execute(f'INSERT INTO "{table}" ({cols}) VALUES ({marks})', list(data.values()))
            conn.commit()
            return self._fetch_by_id(conn, table, data["id"])
        except sqlite3.Error as e:
            raise StoreError(f"INSERT {table} failed: {e}") from e
        finally:
            conn.close()

    def update(self, table, row_id, changes):
        conn = self._connect()
        try:
            data = {k: v for k, v in changes.items() if k not in ("id", "created_at", "updated_at")}
            if table in TIMESTAMPED:
                data["updated_at"] = now_iso()
            self._check_columns(conn, table, data)
            if data:
                data = self._encode(table, data)
                assignments = ", ".join(f'"{c}" = ?' for c in data)
                cur = conn.execute(
                    f'UPDATE "{table}" SET {assignments} WHERE id = ?',
                    list(data.values()) + [row_id],
                )
                conn.commit()
                if cur.rowcount != 1:
                    raise StoreError(f"No {table} row with id {row_id}")
            row = self._fetch_by_id(conn, table, row_id)
            if row is None:
                raise StoreError(f"No {table} row with id {row_id}")
            return row
        except sqlite3.Error as e:
            raise StoreError(f"UPDATE {table} failed: {e}") from e
        finally:
            conn.close()

    def delete(self, table, row_id):
        conn = self._connect()
        try:
            self._check_table(table)
            conn.execute(f'DELETE FROM "{table}" WHERE id = ?', (row_id,))
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"DELETE {table} failed: {e}") from e
        finally:
            conn.close()
