"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), applying migrations on application start
(``init_db``) and small helpers for the JSON text columns used to
store nested values.

Events are stored one row per event.  Nested parts of an event
(organizer, location, registration settings, participants, prizes,
schedule and so on) are serialized into JSON text columns, so saving
an event rewrites the whole row in one statement.  The per-user mirror
of registrations lives in its own ``registered_events`` table and is
written separately.

Applied migration versions are recorded in the ``migrations`` table and
new migrations run in order.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from .config import settings
from .exceptions import NotFoundError

# Largest value SQLite can store in an INTEGER column.
MAX_ROW_ID = 2**63 - 1


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: users, events and the per-user registration mirror
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'student',
            avatar TEXT,
            profile TEXT,
            is_email_verified INTEGER NOT NULL DEFAULT 0,
            email_verification_token TEXT,
            password_reset_token TEXT,
            password_reset_expires TIMESTAMP,
            last_login TIMESTAMP,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT NOT NULL,
            category TEXT NOT NULL,
            mode TEXT NOT NULL,
            organizer_id INTEGER NOT NULL,
            organizer TEXT NOT NULL,
            location TEXT,
            date_time TEXT NOT NULL,
            registration TEXT NOT NULL,
            participants TEXT NOT NULL DEFAULT '[]',
            status TEXT NOT NULL DEFAULT 'draft',
            visibility TEXT NOT NULL DEFAULT 'public',
            featured INTEGER NOT NULL DEFAULT 0,
            views INTEGER NOT NULL DEFAULT 0,
            tags TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(organizer_id) REFERENCES users(id)
        );

        -- No FOREIGN KEY to events: the mirror is allowed to outlive or
        -- diverge from the event row.
        CREATE TABLE IF NOT EXISTS registered_events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            event_id INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'registered',
            registered_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id)
        );

        CREATE INDEX IF NOT EXISTS idx_events_organizer_id ON events(organizer_id);
        CREATE INDEX IF NOT EXISTS idx_events_status ON events(status);
        CREATE INDEX IF NOT EXISTS idx_registered_events_user_id ON registered_events(user_id);
        """,
    ),
    # Migration 2: notes and their ratings
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS notes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT,
            subject TEXT NOT NULL,
            type TEXT NOT NULL,
            semester TEXT,
            author_id INTEGER NOT NULL,
            author_name TEXT,
            university TEXT,
            file_url TEXT NOT NULL,
            file_name TEXT NOT NULL,
            file_size INTEGER NOT NULL,
            pages INTEGER NOT NULL DEFAULT 0,
            downloads INTEGER NOT NULL DEFAULT 0,
            rating REAL NOT NULL DEFAULT 0,
            rating_count INTEGER NOT NULL DEFAULT 0,
            tags TEXT,
            saved_by TEXT NOT NULL DEFAULT '[]',
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(author_id) REFERENCES users(id)
        );

        -- One rating per (note, user); re-rating overwrites via upsert.
        CREATE TABLE IF NOT EXISTS note_ratings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            note_id INTEGER NOT NULL,
            user_id INTEGER NOT NULL,
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(note_id, user_id),
            FOREIGN KEY(note_id) REFERENCES notes(id),
            FOREIGN KEY(user_id) REFERENCES users(id)
        );

        CREATE INDEX IF NOT EXISTS idx_notes_author_id ON notes(author_id);
        """,
    ),
    # Migration 3: outgoing email queue
    (
        3,
        """
        CREATE TABLE IF NOT EXISTS email_outbox (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            kind TEXT NOT NULL,
            sender TEXT NOT NULL,
            recipient TEXT NOT NULL,
            reply_to TEXT,
            subject TEXT NOT NULL,
            context TEXT,
            status TEXT NOT NULL DEFAULT 'queued',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
    # Migration 4: event content (prizes, schedule, skills, image, documents)
    (
        4,
        """
        ALTER TABLE events ADD COLUMN prizes TEXT NOT NULL DEFAULT '[]';
        ALTER TABLE events ADD COLUMN schedule TEXT NOT NULL DEFAULT '[]';
        ALTER TABLE events ADD COLUMN skills TEXT NOT NULL DEFAULT '[]';
        ALTER TABLE events ADD COLUMN image TEXT;
        ALTER TABLE events ADD COLUMN documents TEXT NOT NULL DEFAULT '[]';
        """,
    ),
]


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # event_hub_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Timestamps are stored and returned as ISO strings; parsing is
    left to the pydantic schemas.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    # Foreign key enforcement is off by default in SQLite and must be
    # enabled per connection.
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def dump_json(value: Any) -> str | None:
    """Serialize a value for a JSON text column (``None`` stays NULL)."""
    if value is None:
        return None
    return json.dumps(value, default=str)


def load_json(raw: str | None, default: Any = None) -> Any:
    """Deserialize a JSON text column, returning ``default`` for NULL."""
    if raw is None or raw == "":
        return default
    return json.loads(raw)


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    ``MIGRATIONS``.  To add a migration, append it with an incremented
    version number.
    """
    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version


def parse_id(raw: str, resource: str) -> int:
    """Convert a path identifier to an integer row id.

    Malformed identifiers are reported exactly like missing rows so
    that callers cannot tell the two apart.
    """
    raw = str(raw)
    if not (raw.isascii() and raw.isdigit()) or int(raw) > MAX_ROW_ID:
        raise NotFoundError(resource)
    return int(raw)
