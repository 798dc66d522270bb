"""
marketplace/db.py

SQLite connection helper and schema setup.

- get_db(): one connection per caller, sqlite3.Row rows, foreign keys on
- init_db(): idempotent CREATE TABLE / index / column migrations

The database path is read from config at call time so tests can point
DATABASE_PATH at a temporary file.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path as FsPath
from typing import Set

from marketplace import config


def get_db_path() -> str:
    """Absolute path of the SQLite file (relative paths resolve against this package)."""
    path = FsPath(config.DATABASE_PATH)
    if not path.is_absolute():
        path = FsPath(__file__).resolve().parent / path
    return str(path)


def get_db() -> sqlite3.Connection:
    """
    Create and return a SQLite connection with Row factory.
    The caller owns the connection and must close it.
    """
    conn = sqlite3.connect(get_db_path(), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


# ---------------------------------------------------------
# Migration helpers
# ---------------------------------------------------------

def get_table_columns(conn: sqlite3.Connection, table_name: str) -> Set[str]:
    """Return set of column names for a table using PRAGMA table_info."""
    cur = conn.cursor()
    cur.execute(f"PRAGMA table_info({table_name})")
    return {row["name"] for row in cur.fetchall()}


def ensure_column(conn: sqlite3.Connection, table_name: str, column_name: str, ddl_fragment: str) -> bool:
    """Add column to table if missing. Returns True if migration applied, False if already exists.

    Args:
        conn: SQLite connection
        table_name: Name of table to alter
        column_name: Name of column to add
        ddl_fragment: Column definition (e.g., 'REAL', 'TEXT DEFAULT NULL')
    """
    if column_name in get_table_columns(conn, table_name):
        return False

    try:
        conn.execute(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {ddl_fragment}")
        conn.commit()
        print(f"[MIGRATION] Added column {table_name}.{column_name} ({ddl_fragment})")
        return True
    except sqlite3.OperationalError as e:
        if "duplicate column" not in str(e).lower():
            print(f"[MIGRATION] Warning: Could not add {table_name}.{column_name}: {e}")
        return False


def ensure_listing_columns(conn: sqlite3.Connection) -> None:
    """Columns added after the first schema; older database files lack them."""
    ensure_column(conn, "properties", "rejection_message", "TEXT")
    ensure_column(conn, "properties", "exchange_rate", "REAL")
    ensure_column(conn, "properties", "location_neighborhood", "TEXT DEFAULT ''")
    ensure_column(conn, "projects", "rejection_message", "TEXT")
    ensure_column(conn, "quadrants", "exchange_rate", "REAL")


# ---------------------------------------------------------
# Schema
# ---------------------------------------------------------

def init_db() -> None:
    conn = get_db()
    cur = conn.cursor()

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS agencies (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT UNIQUE NOT NULL,
            name TEXT,
            role TEXT NOT NULL DEFAULT 'AGENT',
            agency_id TEXT,
            is_active BOOLEAN DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS properties (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT DEFAULT '',
            price REAL NOT NULL,
            currency TEXT NOT NULL DEFAULT 'BOLIVIANOS',
            exchange_rate REAL,
            bedrooms INTEGER DEFAULT 0,
            bathrooms REAL DEFAULT 0,
            garage_spaces INTEGER DEFAULT 0,
            area REAL NOT NULL,
            property_type TEXT NOT NULL,
            transaction_type TEXT NOT NULL,
            location_state TEXT DEFAULT '',
            location_city TEXT DEFAULT '',
            location_neighborhood TEXT DEFAULT '',
            address TEXT DEFAULT '',
            latitude REAL,
            longitude REAL,
            features TEXT DEFAULT '[]',
            status TEXT NOT NULL DEFAULT 'PENDING',
            rejection_message TEXT,
            owner_agent_id TEXT NOT NULL,
            agency_id TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT DEFAULT '',
            location TEXT DEFAULT '',
            latitude REAL,
            longitude REAL,
            status TEXT NOT NULL DEFAULT 'PENDING',
            rejection_message TEXT,
            owner_agent_id TEXT NOT NULL,
            agency_id TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS floors (
            id TEXT PRIMARY KEY,
            project_id TEXT NOT NULL,
            number INTEGER NOT NULL,
            name TEXT,
            created_at TEXT NOT NULL,
            UNIQUE (project_id, number),
            FOREIGN KEY (project_id) REFERENCES projects (id) ON DELETE CASCADE
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS quadrants (
            id TEXT PRIMARY KEY,
            floor_id TEXT NOT NULL,
            custom_id TEXT NOT NULL,
            type TEXT NOT NULL DEFAULT 'DEPARTAMENTO',
            area REAL NOT NULL,
            bedrooms INTEGER DEFAULT 0,
            bathrooms INTEGER DEFAULT 0,
            price REAL NOT NULL,
            currency TEXT NOT NULL DEFAULT 'BOLIVIANOS',
            exchange_rate REAL,
            status TEXT NOT NULL DEFAULT 'AVAILABLE',
            active BOOLEAN DEFAULT 1,
            created_at TEXT NOT NULL,
            FOREIGN KEY (floor_id) REFERENCES floors (id) ON DELETE CASCADE
        )
        """
    )

    ensure_listing_columns(conn)

    # Dashboards scope by owner/agency and filter by status
    cur.execute("CREATE INDEX IF NOT EXISTS idx_properties_owner ON properties(owner_agent_id)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_properties_agency_status ON properties(agency_id, status)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_projects_owner ON projects(owner_agent_id)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_projects_agency_status ON projects(agency_id, status)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_floors_project ON floors(project_id)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_quadrants_floor ON quadrants(floor_id)")

    conn.commit()
    conn.close()

    if config.IS_DEV:
        print(f"[MIGRATION] Ensured listing schema at {get_db_path()}")
