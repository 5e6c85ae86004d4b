from __future__ import annotations

import os
import sqlite3
from datetime import datetime, timezone
from typing import Any

from .settings import settings


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _resolve_db_path() -> str:
    """Return a file path usable by sqlite.

    If the configured path is an existing directory (a bind mount that was
    created as a directory), the journal file is placed inside it.
    """

    p = os.path.abspath(settings.db_path)

    if os.path.isdir(p):
        p = os.path.join(p, "proxyctl.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


def connect() -> sqlite3.Connection:
    conn = sqlite3.connect(_resolve_db_path())
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Create tables if they do not exist."""
    with connect() as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS events (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              level TEXT NOT NULL,
              route_id INTEGER,
              message TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
            """
        )


_initialized: set[str] = set()  # journal paths whose tables exist


def _ensure_db() -> None:
    path = _resolve_db_path()
    if path in _initialized:
        return
    init_db()
    _initialized.add(path)


def log_event(level: str, message: str, route_id: int | None = None) -> None:
    """Append an event to the journal.

    This is a short blocking sqlite write made from the event loop thread;
    fine for operator-scale event rates. Journal problems never propagate:
    the operation that is logging matters more than the log line.
    """
    if not settings.enable_events:
        return
    try:
        _ensure_db()
        with connect() as conn:
            conn.execute(
                "INSERT INTO events (ts, level, route_id, message) VALUES (?, ?, ?, ?)",
                (utc_now(), level.upper(), route_id, message),
            )
    except (sqlite3.Error, OSError):
        return


def latest_events(limit: int = 100) -> list[dict[str, Any]]:
    _ensure_db()
    with connect() as conn:
        rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [dict(r) for r in rows]
