"""
SQLite State Store for studypace.

Provides portable persistence for:
- Session records with their review state
- Test observations per analysis space
- Review event log (completions and graduations)

The engines never import this module; they only see values. Anything that
satisfies RecordStore can stand in for it.

Database location: ~/.studypace/state.db
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

from loguru import logger

from studypace.core.exceptions import RecordNotFoundError
from studypace.core.models import SessionRecord, TestObservation
from studypace.delivery.serialization import (
    dump_observation,
    dump_session,
    load_observation,
    load_session,
)

# =============================================================================
# Store Interface
# =============================================================================


class RecordStore(Protocol):
    """Load/save interface the study service depends on."""

    def load_sessions(self, subject_id: str | None = None) -> list[SessionRecord]: ...

    def get_session(self, session_id: str) -> SessionRecord: ...

    def save_session(self, record: SessionRecord) -> None: ...

    def load_observations(self, space_id: str) -> list[TestObservation]: ...

    def save_observation(self, observation: TestObservation) -> None: ...

    def log_review_event(
        self,
        session_id: str,
        event: str,
        occurred_at: datetime,
        step_before: int,
        step_after: int,
    ) -> int: ...


@dataclass
class ReviewEvent:
    """A single review transition."""

    id: int
    session_id: str
    event: str  # "complete" or "graduate"
    occurred_at: datetime
    step_before: int
    step_after: int


# Column name -> persisted payload key
SESSION_COLUMNS = {
    "id": "id",
    "subject_id": "subjectId",
    "quantity": "quantity",
    "duration_minutes": "durationMinutes",
    "observed_at": "observedAt",
    "step": "step",
    "next_due_at": "nextDueAt",
    "graduated": "graduated",
    "start_page": "startPage",
    "end_page": "endPage",
    "schema_version": "schemaVersion",
}

OBSERVATION_COLUMNS = {
    "id": "id",
    "space_id": "spaceId",
    "observed_at": "observedAt",
    "score": "score",
    "volume_invested": "volumeInvested",
    "study_hours": "studyHours",
    "test_minutes_actual": "testMinutesActual",
    "test_minutes_recommended": "testMinutesRecommended",
}


# =============================================================================
# State Store
# =============================================================================


class StateStore:
    """
    SQLite-backed RecordStore.

    Review columns are nullable: rows written before scheduling existed are
    normalized by the serialization layer on every load.
    """

    DEFAULT_DB_PATH = Path.home() / ".studypace" / "state.db"

    def __init__(self, db_path: Path | None = None):
        """
        Initialize the state store.

        Args:
            db_path: Custom database path (defaults to ~/.studypace/state.db)
        """
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

        logger.debug(f"StateStore initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_schema(self) -> None:
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                subject_id TEXT NOT NULL,
                quantity REAL NOT NULL,
                duration_minutes REAL NOT NULL,
                observed_at TEXT NOT NULL,
                step INTEGER,
                next_due_at TEXT,
                graduated INTEGER,
                start_page INTEGER,
                end_page INTEGER,
                schema_version INTEGER
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS observations (
                id TEXT PRIMARY KEY,
                space_id TEXT NOT NULL,
                observed_at TEXT NOT NULL,
                score REAL NOT NULL,
                volume_invested REAL DEFAULT 0,
                study_hours REAL DEFAULT 0,
                test_minutes_actual REAL DEFAULT 0,
                test_minutes_recommended REAL DEFAULT 0
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS review_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT NOT NULL,
                event TEXT NOT NULL,
                occurred_at TEXT NOT NULL,
                step_before INTEGER,
                step_after INTEGER,
                FOREIGN KEY (session_id) REFERENCES sessions(id)
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_sessions_subject
            ON sessions(subject_id)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_observations_space
            ON observations(space_id, observed_at)
        """)

        self.conn.commit()

    # =========================================================================
    # Session Operations
    # =========================================================================

    def load_sessions(self, subject_id: str | None = None) -> list[SessionRecord]:
        """
        Load sessions in logging order.

        Args:
            subject_id: Restrict to one subject (all subjects if None)
        """
        cursor = self.conn.cursor()
        if subject_id is None:
            cursor.execute("SELECT * FROM sessions ORDER BY observed_at ASC, rowid ASC")
        else:
            cursor.execute(
                "SELECT * FROM sessions WHERE subject_id = ? "
                "ORDER BY observed_at ASC, rowid ASC",
                (subject_id,),
            )
        return [self._row_to_session(row) for row in cursor.fetchall()]

    def get_session(self, session_id: str) -> SessionRecord:
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM sessions WHERE id = ?", (session_id,))
        row = cursor.fetchone()
        if row is None:
            raise RecordNotFoundError(session_id)
        return self._row_to_session(row)

    def save_session(self, record: SessionRecord) -> None:
        """Insert or update a session and its review state."""
        payload = dump_session(record)
        values = {column: payload.get(key) for column, key in SESSION_COLUMNS.items()}
        values["graduated"] = int(bool(values["graduated"]))

        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        updates = ", ".join(f"{c} = excluded.{c}" for c in values if c != "id")

        self.conn.execute(
            f"INSERT INTO sessions ({columns}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            tuple(values.values()),
        )
        self.conn.commit()

    def _row_to_session(self, row: sqlite3.Row) -> SessionRecord:
        payload = {
            key: row[column]
            for column, key in SESSION_COLUMNS.items()
            if row[column] is not None
        }
        if "graduated" in payload:
            payload["graduated"] = bool(payload["graduated"])
        # Rows without a version predate review state, not the v1 key names
        payload.setdefault("schemaVersion", 2)
        return load_session(payload)

    # =========================================================================
    # Observation Operations
    # =========================================================================

    def load_observations(self, space_id: str) -> list[TestObservation]:
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT * FROM observations WHERE space_id = ? "
            "ORDER BY observed_at ASC, rowid ASC",
            (space_id,),
        )
        return [
            load_observation({key: row[column] for column, key in OBSERVATION_COLUMNS.items()})
            for row in cursor.fetchall()
        ]

    def save_observation(self, observation: TestObservation) -> None:
        payload = dump_observation(observation)
        values = {column: payload.get(key) for column, key in OBSERVATION_COLUMNS.items()}

        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        updates = ", ".join(f"{c} = excluded.{c}" for c in values if c != "id")

        self.conn.execute(
            f"INSERT INTO observations ({columns}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            tuple(values.values()),
        )
        self.conn.commit()

    def list_spaces(self) -> list[str]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT DISTINCT space_id FROM observations ORDER BY space_id")
        return [row["space_id"] for row in cursor.fetchall()]

    # =========================================================================
    # Review Log Operations
    # =========================================================================

    def log_review_event(
        self,
        session_id: str,
        event: str,
        occurred_at: datetime,
        step_before: int,
        step_after: int,
    ) -> int:
        """
        Log a review transition.

        Returns:
            Review event ID
        """
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO review_log (session_id, event, occurred_at, step_before, step_after)
            VALUES (?, ?, ?, ?, ?)
        """,
            (session_id, event, occurred_at.isoformat(), step_before, step_after),
        )
        self.conn.commit()
        return cursor.lastrowid

    def get_review_history(self, session_id: str, limit: int = 10) -> list[ReviewEvent]:
        """Review events for a session, most recent first."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT * FROM review_log
            WHERE session_id = ?
            ORDER BY id DESC
            LIMIT ?
        """,
            (session_id, limit),
        )
        return [
            ReviewEvent(
                id=row["id"],
                session_id=row["session_id"],
                event=row["event"],
                occurred_at=datetime.fromisoformat(row["occurred_at"]),
                step_before=row["step_before"],
                step_after=row["step_after"],
            )
            for row in cursor.fetchall()
        ]

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
