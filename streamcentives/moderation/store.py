"""File-based JSON storage for moderation state.

Storage path: ``~/.streamcentives/moderation/`` (or the configured data
directory) with one JSON list per table:

- ``records.json``  -- moderation records
- ``strikes.json``  -- user strike history (append-only)
- ``queue.json``    -- manual review queue
- ``reports.json``  -- user reports
- ``appeals.json``  -- moderation appeals
- ``settings.json`` -- ``{setting_name: setting_value}`` threshold rows
- ``content_state.json`` -- removal / shadow-ban flags per content row

Every read-modify-write runs under one re-entrant lock per store, so a
store instance can be shared by request threads.
"""

from __future__ import annotations

import json
import threading
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from streamcentives.moderation.errors import PersistenceError
from streamcentives.moderation.models import (
    Action,
    ModerationAppeal,
    ModerationRecord,
    QueueStatus,
    ReviewQueueEntry,
    UserReport,
    UserStrike,
)


class ModerationStore:
    """JSON-file backed tables for the moderation pipeline."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".streamcentives" / "moderation"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._records_path = self._base / "records.json"
        self._strikes_path = self._base / "strikes.json"
        self._queue_path = self._base / "queue.json"
        self._reports_path = self._base / "reports.json"
        self._appeals_path = self._base / "appeals.json"
        self._settings_path = self._base / "settings.json"
        self._content_state_path = self._base / "content_state.json"

    @property
    def base_dir(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text())
            return data if isinstance(data, list) else []
        except (json.JSONDecodeError, OSError):
            return []

    def _read_mapping(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_json(self, path: Path, data: Any) -> None:
        try:
            path.write_text(json.dumps(data, indent=2, default=str))
        except OSError as exc:
            raise PersistenceError(f"Failed to write {path.name}: {exc}") from exc

    def _append(self, path: Path, row: dict) -> None:
        with self._lock:
            rows = self._read_json(path)
            rows.append(row)
            self._write_json(path, rows)

    # ------------------------------------------------------------------
    # Moderation records
    # ------------------------------------------------------------------

    def insert_record(self, record: ModerationRecord) -> ModerationRecord:
        """Persist a new moderation record.  Raises :class:`PersistenceError`."""
        self._append(self._records_path, record.to_dict())
        return record

    def update_action(self, record_id: str, action: Action) -> ModerationRecord:
        """Set ``action_taken`` on a record.  Allowed once per record."""
        with self._lock:
            rows = self._read_json(self._records_path)
            for row in rows:
                if row["id"] == record_id:
                    if row.get("updated_at"):
                        raise PersistenceError(
                            f"Moderation record {record_id} already has a final action"
                        )
                    row["action_taken"] = action.value
                    row["updated_at"] = datetime.now(timezone.utc).isoformat()
                    self._write_json(self._records_path, rows)
                    return ModerationRecord.from_dict(row)
        raise PersistenceError(f"Moderation record {record_id} not found")

    def get_record(self, record_id: str) -> Optional[ModerationRecord]:
        for row in self._read_json(self._records_path):
            if row["id"] == record_id:
                return ModerationRecord.from_dict(row)
        return None

    def find_record(self, content_id: str, content_type: str) -> Optional[ModerationRecord]:
        """Return the most recent record for a content item, if any."""
        matches = [
            row
            for row in self._read_json(self._records_path)
            if row["content_id"] == content_id and row["content_type"] == content_type
        ]
        if not matches:
            return None
        matches.sort(key=lambda r: r.get("created_at", ""))
        return ModerationRecord.from_dict(matches[-1])

    def list_records(self, user_id: Optional[str] = None) -> list[ModerationRecord]:
        rows = self._read_json(self._records_path)
        if user_id:
            rows = [r for r in rows if r["user_id"] == user_id]
        return [ModerationRecord.from_dict(r) for r in rows]

    # ------------------------------------------------------------------
    # Strikes
    # ------------------------------------------------------------------

    def insert_strike(self, strike: UserStrike) -> UserStrike:
        self._append(self._strikes_path, strike.to_dict())
        return strike

    def list_strikes(self, user_id: str) -> list[UserStrike]:
        return [
            UserStrike.from_dict(r)
            for r in self._read_json(self._strikes_path)
            if r["user_id"] == user_id
        ]

    def mark_appeal_submitted(self, moderation_id: str) -> int:
        """Flag every strike tied to *moderation_id* as under appeal.  Returns the count."""
        with self._lock:
            rows = self._read_json(self._strikes_path)
            updated = 0
            for row in rows:
                if row["moderation_id"] == moderation_id:
                    row["appeal_submitted"] = True
                    row["appeal_status"] = "pending"
                    updated += 1
            if updated:
                self._write_json(self._strikes_path, rows)
        return updated

    # ------------------------------------------------------------------
    # Review queue
    # ------------------------------------------------------------------

    def insert_queue_entry(self, entry: ReviewQueueEntry) -> ReviewQueueEntry:
        self._append(self._queue_path, entry.to_dict())
        return entry

    def list_queue(self, status: Optional[QueueStatus] = None) -> list[ReviewQueueEntry]:
        rows = self._read_json(self._queue_path)
        if status is not None:
            rows = [r for r in rows if r.get("status") == status.value]
        return [ReviewQueueEntry.from_dict(r) for r in rows]

    def resolve_queue_entry(self, entry_id: str) -> Optional[ReviewQueueEntry]:
        """Mark a queue entry resolved.  Returns None if not found."""
        with self._lock:
            rows = self._read_json(self._queue_path)
            for row in rows:
                if row["id"] == entry_id:
                    if row.get("status") != QueueStatus.RESOLVED.value:
                        row["status"] = QueueStatus.RESOLVED.value
                        row["resolved_at"] = datetime.now(timezone.utc).isoformat()
                        self._write_json(self._queue_path, rows)
                    return ReviewQueueEntry.from_dict(row)
        return None

    # ------------------------------------------------------------------
    # Reports and appeals
    # ------------------------------------------------------------------

    def insert_report(self, report: UserReport) -> UserReport:
        self._append(self._reports_path, asdict(report))
        return report

    def list_reports(self) -> list[UserReport]:
        return [UserReport(**r) for r in self._read_json(self._reports_path)]

    def insert_appeal(self, appeal: ModerationAppeal) -> ModerationAppeal:
        self._append(self._appeals_path, asdict(appeal))
        return appeal

    def list_appeals(self) -> list[ModerationAppeal]:
        return [ModerationAppeal(**a) for a in self._read_json(self._appeals_path)]

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self, names: Iterable[str]) -> dict[str, Any]:
        """Return the requested ``setting_name -> setting_value`` rows that exist."""
        data = self._read_mapping(self._settings_path)
        return {name: data[name] for name in names if name in data}

    def put_settings(self, values: dict[str, Any]) -> None:
        with self._lock:
            data = self._read_mapping(self._settings_path)
            data.update(values)
            self._write_json(self._settings_path, data)

    # ------------------------------------------------------------------
    # Content state
    # ------------------------------------------------------------------

    def set_content_state(self, table: str, content_id: str, **fields: Any) -> dict[str, Any]:
        """Merge visibility fields for a community content row."""
        with self._lock:
            data = self._read_mapping(self._content_state_path)
            key = f"{table}:{content_id}"
            state = data.get(key, {})
            state.update(fields)
            data[key] = state
            self._write_json(self._content_state_path, data)
        return state

    def get_content_state(self, table: str, content_id: str) -> dict[str, Any]:
        return self._read_mapping(self._content_state_path).get(f"{table}:{content_id}", {})
