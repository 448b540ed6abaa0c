"""
core/event_log/logic/event_logger.py
====================================

Thread-safe event log with SQLite backend.

Features write one row per noteworthy action (feature, event, level,
reference id, message). Diagnostics go through the standard ``logging``
module; this log is the persistent audit trail of signing actions.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.common.db_interface import DatabaseAccess, create_sqlite_connection
from core.event_log.models.log_entry import LogEntry

logger = logging.getLogger(__name__)


class EventLogger(DatabaseAccess):
    """SQLite-backed event log, one instance per database file."""

    def __init__(self, db_path: Path) -> None:
        self._lock = threading.Lock()
        self._db_path = Path(db_path)
        self._ensure_db()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        return create_sqlite_connection(self._db_path)

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> LogEntry:
        """Persist one entry and return it."""
        entry = LogEntry(
            id=None,
            timestamp=datetime.now(timezone.utc),
            log_level=level,
            feature=feature,
            event=event,
            reference_id=reference_id,
            message=message,
        )
        self._insert_log(entry)
        return entry

    # ------------------------------------------------------------------ #
    #  Fetch / Query / Clear                                             #
    # ------------------------------------------------------------------ #
    def fetch_logs(self, limit: int = 100) -> List[LogEntry]:
        return self.query_logs(limit=limit)

    def query_logs(
        self,
        *,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        query = "SELECT * FROM logs WHERE 1=1"
        params: list[object] = []

        if feature is not None:
            query += " AND feature = ?"
            params.append(feature)
        if event is not None:
            query += " AND event = ?"
            params.append(event)
        if reference_id is not None:
            query += " AND reference_id = ?"
            params.append(reference_id)
        if level is not None:
            query += " AND log_level = ?"
            params.append(level)
        if start_time is not None:
            query += " AND timestamp >= ?"
            params.append(start_time)
        if end_time is not None:
            query += " AND timestamp <= ?"
            params.append(end_time)

        query += " ORDER BY timestamp DESC, id DESC LIMIT ?"
        params.append(limit)

        with self._lock, closing(self.connect()) as conn:
            rows = conn.execute(query, params).fetchall()
        return [LogEntry.from_dict(dict(row)) for row in rows]

    def clear_logs(self) -> None:
        with self._lock, closing(self.connect()) as conn:
            conn.execute("DELETE FROM logs")
            conn.commit()

    # ------------------------------------------------------------------ #
    #  Internal helpers                                                  #
    # ------------------------------------------------------------------ #
    def _ensure_db(self) -> None:
        os.makedirs(self._db_path.parent, exist_ok=True)
        with self._lock, closing(self.connect()) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    feature TEXT NOT NULL,
                    event TEXT NOT NULL,
                    reference_id TEXT,
                    message TEXT,
                    log_level TEXT NOT NULL DEFAULT 'INFO'
                )
                """
            )
            conn.commit()

    def _insert_log(self, entry: LogEntry) -> None:
        with self._lock, closing(self.connect()) as conn:
            conn.execute(
                """
                INSERT INTO logs
                    (timestamp, feature, event, reference_id, message, log_level)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.timestamp.isoformat(),
                    entry.feature,
                    entry.event,
                    entry.reference_id,
                    entry.message,
                    entry.log_level,
                ),
            )
            conn.commit()


# --------------------------------------------------------------------------- #
#  Shared instance                                                            #
# --------------------------------------------------------------------------- #
_instance: Optional[EventLogger] = None
_instance_lock = threading.Lock()


def get_event_logger() -> EventLogger:
    """Event log at the configured ``[Logging] event_db`` path, created on first use."""
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                from core.config.config_service import get_config_service  # lazy
                _instance = EventLogger(get_config_service().logging.event_db)
    return _instance
