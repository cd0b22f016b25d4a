"""Audit logging for swap transitions and moderation actions.

Provides file-based JSON audit logging with filtering and export. Entries
are stored as newline-delimited JSON in daily files under
``~/.skillswap/audit_logs/``. Swap requests, reports and skill submissions
are retained indefinitely; this log records who moved them and when.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from skillswap.storage import new_id

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    timestamp: str
    actor: str
    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True


class AuditLogger:
    """File-based JSON audit logger."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".skillswap" / "audit_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping unreadable audit entry %s:%d", path.name, lineno)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_event(
        self,
        actor: str,
        action: str,
        resource_type: str,
        resource_id: str,
        details: Optional[dict[str, Any]] = None,
        success: bool = True,
    ) -> AuditEntry:
        """Record an audit event and return the created entry."""
        now = datetime.now(timezone.utc)
        entry = AuditEntry(
            id=new_id(),
            timestamp=now.isoformat(),
            actor=actor,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            success=success,
        )
        with self._log_file_for_date(now).open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry)) + "\n")
        return entry

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered audit events, newest first."""
        entries = self._read_all_entries()

        if actor:
            entries = [e for e in entries if e.actor == actor]
        if action:
            entries = [e for e in entries if e.action == action]
        if resource_type:
            entries = [e for e in entries if e.resource_type == resource_type]
        if resource_id:
            entries = [e for e in entries if e.resource_id == resource_id]
        if start_date:
            entries = [e for e in entries if e.timestamp >= start_date]
        if end_date:
            entries = [e for e in entries if e.timestamp <= end_date]

        # Newest first
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def export_events(self, fmt: str = "json", **filters: Any) -> str:
        """Export audit events in the specified format (``json`` or ``csv``)."""
        filters.setdefault("limit", 10000)
        entries = self.get_events(**filters)

        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.writer(buf, lineterminator="\n")
            writer.writerow(["id", "timestamp", "actor", "action", "resource_type", "resource_id", "success"])
            for e in entries:
                writer.writerow([e.id, e.timestamp, e.actor, e.action, e.resource_type, e.resource_id, e.success])
            return buf.getvalue()

        # Default to JSON
        return json.dumps([asdict(e) for e in entries], indent=2)
