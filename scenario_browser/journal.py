"""SQLite-backed run journal: scenario outcomes, artifacts and report attachments."""

from __future__ import annotations

import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import Artifact, Scenario


class RunJournal:
    """Persist lifecycle records into SQLite.

    Writes are best-effort: a journal failure never reaches the scenario.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def start(self) -> None:
        """Open the database and create the schema. Raises if the file cannot be opened."""
        with self._lock:
            if self._conn is not None:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False, timeout=10)
            try:
                for pragma in ("journal_mode=WAL", "synchronous=NORMAL", "busy_timeout=5000"):
                    conn.execute(f"PRAGMA {pragma};")
            except sqlite3.Error:
                conn.close()
                raise
            self._conn = conn
            self._init_schema()

    def close(self) -> None:
        with self._lock:
            conn, self._conn = self._conn, None
            if conn is None:
                return
            try:
                conn.close()
            except sqlite3.Error:
                pass

    def init_run(self, run_id: str, headless: bool, record_video: bool) -> None:
        self._safe_execute(
            """
            INSERT OR REPLACE INTO runs (run_id, started_at, headless, record_video, status)
            VALUES (?, ?, ?, ?, ?)
            """,
            (str(run_id), float(time.time()), int(bool(headless)), int(bool(record_video)), "running"),
        )

    def complete_run(self, run_id: str, status: str) -> None:
        self._safe_execute(
            "UPDATE runs SET ended_at = ?, status = ? WHERE run_id = ?",
            (float(time.time()), str(status or "unknown"), str(run_id)),
        )

    def init_scenario(self, run_id: str, scenario: Scenario, artifact_prefix: str) -> None:
        self._safe_execute(
            """
            INSERT OR REPLACE INTO scenario_runs (
                scenario_id, run_id, name, artifact_prefix, started_at, outcome, error
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                scenario.scenario_id,
                str(run_id),
                scenario.name,
                artifact_prefix,
                float(scenario.started_at),
                scenario.outcome.value,
                scenario.error,
            ),
        )

    def complete_scenario(self, scenario: Scenario) -> None:
        self._safe_execute(
            """
            UPDATE scenario_runs
               SET ended_at = ?, outcome = ?, error = ?
             WHERE scenario_id = ?
            """,
            (float(time.time()), scenario.outcome.value, scenario.error, scenario.scenario_id),
        )

    def record_artifact(self, artifact: Artifact) -> None:
        self._safe_execute(
            """
            INSERT INTO artifacts (scenario_id, kind, path, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (artifact.scenario_id, artifact.kind.value, str(artifact.path), float(artifact.created_at)),
        )

    def attach(self, scenario_id: str, name: str, mime_type: str, payload: Any) -> None:
        """Attach report evidence: bytes are stored as-is, text as UTF-8."""
        if isinstance(payload, str):
            data = payload.encode("utf-8")
        else:
            data = bytes(payload or b"")
        self._safe_execute(
            """
            INSERT INTO attachments (scenario_id, name, mime_type, payload, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (str(scenario_id), str(name), str(mime_type), sqlite3.Binary(data), float(time.time())),
        )

    # Readers below serve reports and tests; the lifecycle only writes.

    def list_runs(self) -> List[Dict[str, Any]]:
        return self._query(
            "SELECT run_id, started_at, ended_at, headless, record_video, status FROM runs ORDER BY started_at"
        )

    def list_scenarios(self, run_id: str) -> List[Dict[str, Any]]:
        return self._query(
            """
            SELECT scenario_id, name, artifact_prefix, started_at, ended_at, outcome, error
              FROM scenario_runs WHERE run_id = ? ORDER BY started_at
            """,
            (str(run_id),),
        )

    def list_artifacts(self, scenario_id: str) -> List[Dict[str, Any]]:
        return self._query(
            "SELECT kind, path, created_at FROM artifacts WHERE scenario_id = ? ORDER BY id",
            (str(scenario_id),),
        )

    def list_attachments(self, scenario_id: str) -> List[Dict[str, Any]]:
        return self._query(
            "SELECT name, mime_type, payload FROM attachments WHERE scenario_id = ? ORDER BY id",
            (str(scenario_id),),
        )

    def _init_schema(self) -> None:
        self._safe_execute(
            """
            CREATE TABLE IF NOT EXISTS runs (
                run_id TEXT PRIMARY KEY,
                started_at REAL,
                ended_at REAL,
                headless INTEGER,
                record_video INTEGER,
                status TEXT
            )
            """
        )
        self._safe_execute(
            """
            CREATE TABLE IF NOT EXISTS scenario_runs (
                scenario_id TEXT PRIMARY KEY,
                run_id TEXT,
                name TEXT,
                artifact_prefix TEXT,
                started_at REAL,
                ended_at REAL,
                outcome TEXT,
                error TEXT
            )
            """
        )
        self._safe_execute(
            """
            CREATE TABLE IF NOT EXISTS artifacts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                scenario_id TEXT,
                kind TEXT,
                path TEXT,
                created_at REAL
            )
            """
        )
        self._safe_execute(
            """
            CREATE TABLE IF NOT EXISTS attachments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                scenario_id TEXT,
                name TEXT,
                mime_type TEXT,
                payload BLOB,
                created_at REAL
            )
            """
        )
        for table in ("scenario_runs", "artifacts", "attachments"):
            column = "run_id" if table == "scenario_runs" else "scenario_id"
            self._safe_execute(
                f"CREATE INDEX IF NOT EXISTS idx_{table}_{column} ON {table}({column})"
            )

    def _connection(self) -> Optional[sqlite3.Connection]:
        if self._conn is None:
            try:
                self.start()
            except (sqlite3.Error, OSError):
                return None
        return self._conn

    def _query(self, sql: str, params: tuple[Any, ...] = ()) -> List[Dict[str, Any]]:
        with self._lock:
            conn = self._connection()
            if conn is None:
                return []
            cursor = conn.execute(sql, params)
            columns = [c[0] for c in cursor.description or ()]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def _safe_execute(self, sql: str, params: tuple[Any, ...] = ()) -> None:
        with self._lock:
            try:
                conn = self._connection()
                if conn is None:
                    return
                conn.execute(sql, params)
                conn.commit()
            except Exception:
                # A lost journal row is not a scenario failure.
                return
