"""
SQLite State Store.

Local persistence for one learner:
- Profile, progress and entitlement documents
- Diagnostic results and drill sessions (append-only lists)
- Spaced-repetition state per content bundle

Documents live as JSON in a key/value table under versioned keys, so a
full export is exactly what cloud sync pushes. Bundle review state has
its own table for due-date queries.

Database location: ~/.exam-vocab-boost/state.db
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

from loguru import logger

from src.adaptive.srs import BundleState, LastResult
from src.adaptive.utils import as_utc, parse_instant

from .records import (
    DiagnosticResult,
    DrillSession,
    Entitlement,
    UserProfile,
    UserProgress,
    utc_now_iso,
)

T = TypeVar("T")

STORAGE_PREFIX = "evb_v1_"


class StorageKey:
    PROFILE = f"{STORAGE_PREFIX}profile"
    PROGRESS = f"{STORAGE_PREFIX}progress"
    DIAGNOSTICS = f"{STORAGE_PREFIX}diagnostics"
    SESSIONS = f"{STORAGE_PREFIX}sessions"
    ENTITLEMENT = f"{STORAGE_PREFIX}entitlement"

    ALL = (PROFILE, PROGRESS, DIAGNOSTICS, SESSIONS, ENTITLEMENT)


class StateStore:
    """
    SQLite-backed learner state.

    Reads never raise on bad data: a row that fails to parse is logged
    and treated as missing.
    """

    DEFAULT_DB_PATH = Path.home() / ".exam-vocab-boost" / "state.db"

    def __init__(self, db_path: Path | None = None):
        """
        Initialize the state store.

        Args:
            db_path: Custom database path (defaults to ~/.exam-vocab-boost/state.db)
        """
        self.db_path = db_path or self.DEFAULT_DB_PATH
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
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS bundle_state (
                bundle_id TEXT PRIMARY KEY,
                ease REAL NOT NULL DEFAULT 2.5,
                interval_days INTEGER NOT NULL DEFAULT 1,
                due_at TEXT NOT NULL,
                last_correct INTEGER,
                last_reviewed_at TEXT
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_bundle_state_due
            ON bundle_state(due_at)
        """)

        self.conn.commit()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> StateStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # =========================================================================
    # Raw document access
    # =========================================================================

    def _get_json(self, key: str) -> Any | None:
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupt value for {key}: {e}")
            return None

    def _set_json(self, key: str, value: Any) -> None:
        self.conn.execute(
            """
            INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
        """,
            (key, json.dumps(value), utc_now_iso()),
        )
        self.conn.commit()

    def _load(self, key: str, parse: Callable[[dict], T]) -> T | None:
        data = self._get_json(key)
        if data is None:
            return None
        try:
            return parse(data)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable {key}: {e}")
            return None

    def _load_list(self, key: str, parse: Callable[[dict], T]) -> list[T]:
        data = self._get_json(key)
        if not isinstance(data, list):
            return []

        records: list[T] = []
        for entry in data:
            try:
                records.append(parse(entry))
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                logger.warning(f"Skipping unreadable entry in {key}: {e}")
        return records

    # =========================================================================
    # Profile
    # =========================================================================

    def get_profile(self) -> UserProfile | None:
        return self._load(StorageKey.PROFILE, UserProfile.from_dict)

    def set_profile(self, profile: UserProfile) -> UserProfile:
        profile = replace(profile, updated_at=utc_now_iso())
        self._set_json(StorageKey.PROFILE, profile.to_dict())
        return profile

    def update_profile(self, **changes: Any) -> UserProfile:
        """
        Merge field changes into the stored profile, creating it if needed.

        Raises:
            TypeError: If a change names an unknown field
        """
        current = self.get_profile() or UserProfile()
        return self.set_profile(replace(current, **changes))

    # =========================================================================
    # Progress
    # =========================================================================

    def get_progress(self) -> UserProgress | None:
        return self._load(StorageKey.PROGRESS, UserProgress.from_dict)

    def set_progress(self, progress: UserProgress) -> UserProgress:
        progress = replace(progress, last_updated=utc_now_iso())
        self._set_json(StorageKey.PROGRESS, progress.to_dict())
        return progress

    def initialize_progress(self) -> UserProgress:
        """Store and return an empty progress record."""
        return self.set_progress(UserProgress())

    def update_progress(self, **changes: Any) -> UserProgress:
        current = self.get_progress() or self.initialize_progress()
        return self.set_progress(replace(current, **changes))

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def get_diagnostics(self) -> list[DiagnosticResult]:
        return self._load_list(StorageKey.DIAGNOSTICS, DiagnosticResult.from_dict)

    def _save_diagnostics(self, diagnostics: list[DiagnosticResult]) -> None:
        self._set_json(StorageKey.DIAGNOSTICS, [d.to_dict() for d in diagnostics])

    def add_diagnostic(self, diagnostic: DiagnosticResult) -> None:
        diagnostics = self.get_diagnostics()
        diagnostics.append(diagnostic)
        self._save_diagnostics(diagnostics)
        logger.info(f"Stored diagnostic {diagnostic.id}")

    def update_diagnostic(self, diagnostic_id: str, **changes: Any) -> bool:
        """
        Apply field changes to a stored diagnostic.

        Returns:
            True if the diagnostic existed and was updated
        """
        diagnostics = self.get_diagnostics()
        for index, diagnostic in enumerate(diagnostics):
            if diagnostic.id == diagnostic_id:
                diagnostics[index] = replace(diagnostic, **changes)
                self._save_diagnostics(diagnostics)
                return True
        return False

    def get_latest_diagnostic(self) -> DiagnosticResult | None:
        """The most recently added diagnostic, complete or not."""
        diagnostics = self.get_diagnostics()
        return diagnostics[-1] if diagnostics else None

    # =========================================================================
    # Drill Sessions
    # =========================================================================

    def get_sessions(self) -> list[DrillSession]:
        return self._load_list(StorageKey.SESSIONS, DrillSession.from_dict)

    def add_session(self, session: DrillSession) -> None:
        sessions = self.get_sessions()
        sessions.append(session)
        self._set_json(StorageKey.SESSIONS, [s.to_dict() for s in sessions])
        logger.info(f"Stored {session.mode.value} session {session.id}")

    def get_recent_sessions(self, n: int = 10) -> list[DrillSession]:
        """The last n sessions, oldest first."""
        if n <= 0:
            return []
        return self.get_sessions()[-n:]

    # =========================================================================
    # Bundle Review State
    # =========================================================================

    def get_bundle_states(self) -> list[BundleState]:
        rows = self.conn.execute("SELECT * FROM bundle_state ORDER BY due_at").fetchall()

        states: list[BundleState] = []
        for row in rows:
            try:
                last_result = None
                if row["last_reviewed_at"] is not None:
                    last_result = LastResult(
                        correct=bool(row["last_correct"]),
                        timestamp=parse_instant(row["last_reviewed_at"]),
                    )
                states.append(
                    BundleState(
                        bundle_id=row["bundle_id"],
                        ease=row["ease"],
                        interval_days=row["interval_days"],
                        due_at=parse_instant(row["due_at"]),
                        last_result=last_result,
                    )
                )
            except ValueError as e:
                logger.warning(f"Skipping bundle state {row['bundle_id']}: {e}")
        return states

    def save_bundle_state(self, state: BundleState) -> None:
        last = state.last_result
        self.conn.execute(
            """
            INSERT INTO bundle_state (
                bundle_id, ease, interval_days, due_at, last_correct, last_reviewed_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(bundle_id) DO UPDATE SET
                ease = excluded.ease,
                interval_days = excluded.interval_days,
                due_at = excluded.due_at,
                last_correct = excluded.last_correct,
                last_reviewed_at = excluded.last_reviewed_at
        """,
            (
                state.bundle_id,
                state.ease,
                state.interval_days,
                as_utc(state.due_at).isoformat(),
                int(last.correct) if last else None,
                as_utc(last.timestamp).isoformat() if last else None,
            ),
        )
        self.conn.commit()

    # =========================================================================
    # Entitlement
    # =========================================================================

    def get_entitlement(self) -> Entitlement:
        """Stored entitlement, or the free tier when none is recorded."""
        return self._load(StorageKey.ENTITLEMENT, Entitlement.from_dict) or Entitlement()

    def set_entitlement(self, entitlement: Entitlement) -> None:
        self._set_json(StorageKey.ENTITLEMENT, entitlement.to_dict())

    # =========================================================================
    # Whole-store operations
    # =========================================================================

    def has_meaningful_engagement(self) -> bool:
        """True once the learner finished a diagnostic or any drill session."""
        if any(d.is_complete for d in self.get_diagnostics()):
            return True
        return len(self.get_sessions()) > 0

    def export_all(self) -> dict[str, Any]:
        """Every stored document, keyed by short name (the cloud sync payload)."""
        profile = self.get_profile()
        progress = self.get_progress()
        return {
            "profile": profile.to_dict() if profile else None,
            "progress": progress.to_dict() if progress else None,
            "diagnostics": [d.to_dict() for d in self.get_diagnostics()],
            "sessions": [s.to_dict() for s in self.get_sessions()],
            "entitlement": self.get_entitlement().to_dict(),
            "bundle_states": [b.to_dict() for b in self.get_bundle_states()],
        }

    def import_all(self, data: dict[str, Any]) -> list[str]:
        """
        Replace stored documents with those present in an export payload.

        Absent or empty sections are left untouched. The payload is fully
        parsed before anything is written.

        Returns:
            Names of the sections that were imported

        Raises:
            ValueError: If a section is present but malformed
        """
        try:
            parsed: dict[str, Any] = {}
            if data.get("profile"):
                parsed["profile"] = UserProfile.from_dict(data["profile"])
            if data.get("progress"):
                parsed["progress"] = UserProgress.from_dict(data["progress"])
            if data.get("diagnostics"):
                parsed["diagnostics"] = [DiagnosticResult.from_dict(d) for d in data["diagnostics"]]
            if data.get("sessions"):
                parsed["sessions"] = [DrillSession.from_dict(s) for s in data["sessions"]]
            if data.get("entitlement"):
                parsed["entitlement"] = Entitlement.from_dict(data["entitlement"])
            if data.get("bundle_states"):
                parsed["bundle_states"] = [BundleState.from_dict(b) for b in data["bundle_states"]]
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise ValueError(f"Invalid state payload: {e}") from e

        if "profile" in parsed:
            self._set_json(StorageKey.PROFILE, parsed["profile"].to_dict())
        if "progress" in parsed:
            self._set_json(StorageKey.PROGRESS, parsed["progress"].to_dict())
        if "diagnostics" in parsed:
            self._save_diagnostics(parsed["diagnostics"])
        if "sessions" in parsed:
            self._set_json(StorageKey.SESSIONS, [s.to_dict() for s in parsed["sessions"]])
        if "entitlement" in parsed:
            self.set_entitlement(parsed["entitlement"])
        for state in parsed.get("bundle_states", []):
            self.save_bundle_state(state)

        logger.info(f"Imported sections: {', '.join(parsed) or 'none'}")
        return list(parsed)

    def backup(self) -> Path:
        """Write the current export to a timestamped JSON file next to the database."""
        backup_dir = self.db_path.parent / "backups"
        backup_dir.mkdir(exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        backup_file = backup_dir / f"state_backup_{timestamp}.json"

        with open(backup_file, "w", encoding="utf-8") as f:
            json.dump(self.export_all(), f, indent=2)

        logger.info(f"Backup saved: {backup_file}")
        return backup_file

    def clear_all(self) -> None:
        """Delete every stored document and bundle state."""
        self.conn.execute("DELETE FROM kv")
        self.conn.execute("DELETE FROM bundle_state")
        self.conn.commit()
        logger.info("Cleared all local state")
