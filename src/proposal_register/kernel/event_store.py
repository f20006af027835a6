"""
SQLite Event Store - Append-only log of every register state change

The event store is the durable medium behind the register. It provides:
- Append-only semantics (events never modified or deleted)
- A global append position that fixes replay order
- Optimistic locking via per-stream versions
- Idempotency via command_id
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from proposal_register.kernel.errors import EventStoreError, StreamVersionConflict
from proposal_register.kernel.events import Event
from proposal_register.kernel.logging import get_logger
from proposal_register.kernel.metrics import (
    events_appended_total,
    events_loaded_total,
    stream_version_conflicts_total,
)
from proposal_register.kernel.retry import retry_on_sqlite_lock

logger = get_logger(__name__)

_EVENT_COLUMNS = """
    position, event_id, stream_id, stream_type, version,
    command_id, event_type, occurred_at, actor_id, payload_json
"""


class SQLiteEventStore:
    """
    SQLite-based event store with append-only semantics

    Schema:
    - events table: append-only event log keyed by an autoincrement position
    - Unique constraints: event_id, (stream_id, version)
    - Indices: stream_id, command_id
    """

    def __init__(self, db_path: str | Path, timeout_seconds: float = 5.0) -> None:
        """
        Initialize event store with SQLite database

        Args:
            db_path: Path to SQLite database file (created if missing)
            timeout_seconds: How long SQLite waits on a locked database
        """
        self.db_path = Path(db_path)
        self.timeout_seconds = timeout_seconds
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        """Create tables and indices if they don't exist"""
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    position INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_id TEXT NOT NULL UNIQUE,
                    stream_id TEXT NOT NULL,
                    stream_type TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    command_id TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    occurred_at TEXT NOT NULL,
                    actor_id TEXT,
                    payload_json TEXT NOT NULL,

                    UNIQUE(stream_id, version)
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_stream "
                "ON events(stream_id, version)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_command ON events(command_id)"
            )
            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection that is always closed on exit"""
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout_seconds)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @retry_on_sqlite_lock()
    def append(
        self,
        stream_id: str,
        expected_version: int,
        events: list[Event],
    ) -> list[Event]:
        """
        Append events to a stream with optimistic locking

        All events go in one transaction or none do. The stream version is
        read inside the write transaction, so two processes racing on the
        same proposal cannot both succeed.

        Args:
            stream_id: Aggregate identifier
            expected_version: Stream version the caller based its decision on
            events: Events to append (sequential versions)

        Returns:
            The appended events with their store positions filled in, or the
            previously stored events if this command was already applied

        Raises:
            StreamVersionConflict: If the stream moved since the caller read it
            EventStoreError: On other database errors
        """
        if not events:
            return []

        command_id = events[0].command_id
        existing = [
            e for e in self._get_events_by_command_id(command_id) if e.stream_id == stream_id
        ]
        if existing:
            logger.info(
                "Command already applied, returning stored events",
                command_id=command_id,
                stream_id=stream_id,
            )
            return existing

        with self._connect() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")

                current_version = self._get_stream_version(conn, stream_id)
                if current_version != expected_version:
                    raise StreamVersionConflict(stream_id, expected_version, current_version)

                stored: list[Event] = []
                for event in events:
                    cursor = conn.execute(
                        """
                        INSERT INTO events (
                            event_id, stream_id, stream_type, version,
                            command_id, event_type, occurred_at, actor_id, payload_json
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                        (
                            event.event_id,
                            event.stream_id,
                            event.stream_type,
                            event.version,
                            event.command_id,
                            event.event_type,
                            event.occurred_at.isoformat(),
                            event.actor_id,
                            json.dumps(event.payload),
                        ),
                    )
                    stored.append(event.model_copy(update={"position": cursor.lastrowid}))

                conn.commit()

            except StreamVersionConflict:
                conn.rollback()
                stream_version_conflicts_total.labels(stream_type=events[0].stream_type).inc()
                raise

            except sqlite3.IntegrityError as e:
                conn.rollback()
                if "stream_id" in str(e).lower() and "version" in str(e).lower():
                    stream_version_conflicts_total.labels(
                        stream_type=events[0].stream_type
                    ).inc()
                    current = self.get_stream_version(stream_id)
                    raise StreamVersionConflict(stream_id, expected_version, current) from e
                raise EventStoreError(f"Failed to append events: {e}") from e

            except sqlite3.OperationalError:
                conn.rollback()
                raise

        for event in stored:
            events_appended_total.labels(
                stream_type=event.stream_type, event_type=event.event_type
            ).inc()
        return stored

    @retry_on_sqlite_lock()
    def load_stream(self, stream_id: str) -> list[Event]:
        """
        Load all events for a stream in version order

        Args:
            stream_id: Aggregate identifier

        Returns:
            Events in version order (empty if stream doesn't exist)
        """
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {_EVENT_COLUMNS} FROM events WHERE stream_id = ? ORDER BY version ASC",
                (stream_id,),
            )
            return [self._row_to_event(row) for row in cursor.fetchall()]

    @retry_on_sqlite_lock()
    def load_all_events(
        self,
        after_position: int | None = None,
        limit: int | None = None,
    ) -> list[Event]:
        """
        Load events in append order (for replay)

        Args:
            after_position: Only events appended after this position
            limit: Maximum number of events to return

        Returns:
            Events in global append order
        """
        query = f"SELECT {_EVENT_COLUMNS} FROM events WHERE position > ? ORDER BY position ASC"
        params: list[int] = [after_position or 0]
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        with self._connect() as conn:
            events = [self._row_to_event(row) for row in conn.execute(query, params)]

        events_loaded_total.inc(len(events))
        return events

    def get_stream_version(self, stream_id: str) -> int:
        """Current version of a stream (0 if it doesn't exist)"""
        with self._connect() as conn:
            return self._get_stream_version(conn, stream_id)

    def _get_stream_version(self, conn: sqlite3.Connection, stream_id: str) -> int:
        cursor = conn.execute(
            "SELECT MAX(version) FROM events WHERE stream_id = ?",
            (stream_id,),
        )
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0

    def _get_events_by_command_id(self, command_id: str) -> list[Event]:
        """Get events recorded for a command (for idempotency checking)"""
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {_EVENT_COLUMNS} FROM events WHERE command_id = ? ORDER BY position ASC",
                (command_id,),
            )
            return [self._row_to_event(row) for row in cursor.fetchall()]

    def _row_to_event(self, row: sqlite3.Row) -> Event:
        return Event(
            event_id=row["event_id"],
            stream_id=row["stream_id"],
            stream_type=row["stream_type"],
            version=row["version"],
            command_id=row["command_id"],
            event_type=row["event_type"],
            occurred_at=datetime.fromisoformat(row["occurred_at"]),
            actor_id=row["actor_id"],
            payload=json.loads(row["payload_json"]),
            position=row["position"],
        )

    @retry_on_sqlite_lock()
    def count_events(self) -> int:
        """Total number of events in store"""
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]

    @retry_on_sqlite_lock()
    def count_streams(self) -> int:
        """Total number of distinct streams"""
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(DISTINCT stream_id) FROM events").fetchone()[0]
