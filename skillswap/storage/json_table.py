"""File-based JSON storage for versioned records.

Each table is one JSON file holding a list of record dicts. Every record
carries an ``id`` and a ``version``; writes go through
:meth:`JsonTable.compare_and_set`, which only succeeds when the stored
version (and any extra field expectations) still match what the caller
read. This is the optimistic-concurrency primitive the stores build on.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from skillswap.errors import Conflict, NotFound

logger = logging.getLogger(__name__)

# One lock per table file, shared by every JsonTable instance in the process.
_LOCKS: dict[str, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = _LOCKS[key] = threading.Lock()
        return lock


def new_id() -> str:
    """Return a fresh record id."""
    return uuid.uuid4().hex[:16]


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class JsonTable:
    """File-based storage for one entity type.

    Storage path: ``<base_dir>/<name>.json`` -- list of record dicts.
    """

    def __init__(self, base_dir: str | Path, name: str, kind: str = "") -> None:
        self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._path = self._base / f"{name}.json"
        self._kind = kind or name
        self._lock = _lock_for(self._path)

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self) -> list[dict]:
        if not self._path.exists():
            return []
        data = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        return data if isinstance(data, list) else []

    def _write_json(self, data: list[dict]) -> None:
        fd, tmp = tempfile.mkstemp(dir=self._base, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, default=str)
            os.replace(tmp, self._path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find(self, record_id: str) -> Optional[dict]:
        """Look up a record by ID. Returns None if not found."""
        with self._lock:
            for d in self._read_json():
                if d["id"] == record_id:
                    return d
        return None

    def get(self, record_id: str) -> dict:
        """Look up a record by ID. Raises NotFound."""
        record = self.find(record_id)
        if record is None:
            raise NotFound(self._kind, record_id)
        return record

    def list(self, predicate: Optional[Callable[[dict], bool]] = None) -> list[dict]:
        """Return all records, optionally filtered, in ascending id order."""
        with self._lock:
            records = self._read_json()
        if predicate is not None:
            records = [r for r in records if predicate(r)]
        return sorted(records, key=lambda r: r["id"])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, record: dict) -> dict:
        """Persist a new record at version 1. Returns the stored dict."""
        record = dict(record)
        record.setdefault("id", new_id())
        record["version"] = 1
        with self._lock:
            records = self._read_json()
            if any(r["id"] == record["id"] for r in records):
                raise Conflict(f"{self._kind} '{record['id']}' already exists")
            records.append(record)
            self._write_json(records)
        return record

    def compare_and_set(
        self,
        record_id: str,
        expected_version: int,
        record: dict,
        expect: Optional[dict[str, Any]] = None,
    ) -> dict:
        """Replace a record only if it is unchanged since it was read.

        ``expected_version`` must equal the stored version, and every
        key in ``expect`` must equal the stored field value. On success
        the record is written with ``version + 1`` and returned.

        Raises NotFound if the record is gone and Conflict on mismatch.
        """
        with self._lock:
            records = self._read_json()
            for i, current in enumerate(records):
                if current["id"] != record_id:
                    continue
                if current.get("version") != expected_version:
                    raise Conflict(
                        f"{self._kind} '{record_id}' changed: expected version "
                        f"{expected_version}, found {current.get('version')}"
                    )
                for key, value in (expect or {}).items():
                    if current.get(key) != value:
                        raise Conflict(
                            f"{self._kind} '{record_id}' changed: expected {key}="
                            f"{value!r}, found {current.get(key)!r}"
                        )
                updated = dict(record)
                updated["id"] = record_id
                updated["version"] = expected_version + 1
                records[i] = updated
                self._write_json(records)
                return updated
        raise NotFound(self._kind, record_id)

    def update(
        self,
        record_id: str,
        mutate: Callable[[dict], Optional[dict]],
        max_attempts: int = 5,
    ) -> dict:
        """Read-modify-write a record through compare-and-set.

        ``mutate`` receives a private copy of the current record and
        returns the new record, or None to leave the record as it is
        (nothing is written). It is re-run against fresh state after a
        conflict, up to ``max_attempts`` times.
        """
        for attempt in range(1, max_attempts + 1):
            current = self.get(record_id)
            updated = mutate(copy.deepcopy(current))
            if updated is None:
                return current
            try:
                return self.compare_and_set(record_id, current["version"], updated)
            except Conflict:
                logger.warning(
                    "Conflict updating %s %s (attempt %d/%d)",
                    self._kind, record_id, attempt, max_attempts,
                )
        raise Conflict(f"{self._kind} '{record_id}' kept changing; gave up after {max_attempts} attempts")
