"""File-based JSON storage for skill submissions and member reports.

Provides creation, lookup and decision operations for the moderation
workflows, backed by JSON files under ``~/.skillswap/moderation/``.
Decisions are compare-and-set against ``status == pending`` so a
submission or report can only ever be decided once.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Optional

from skillswap.errors import AlreadyProcessed, Conflict, ValidationError
from skillswap.moderation.models import (
    Report,
    ReportStatus,
    SkillSubmission,
    SubmissionStatus,
)
from skillswap.storage import JsonTable, new_id, utcnow


def _status_value(enum_cls, status) -> Optional[str]:
    if not status:
        return None
    try:
        return enum_cls(status).value
    except ValueError:
        raise ValidationError(f"Unknown status filter '{status}'") from None


class ModerationStore:
    """File-based storage for moderation records.

    Storage path: ``~/.skillswap/moderation/`` with:
    - ``submissions.json`` -- list of skill submission dicts
    - ``reports.json`` -- list of member report dicts
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".skillswap" / "moderation"
        else:
            self._base = Path(base_dir)
        self._submissions = JsonTable(self._base, "submissions", kind="skill submission")
        self._reports = JsonTable(self._base, "reports", kind="report")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _submission_from_dict(d: dict) -> SkillSubmission:
        return SkillSubmission(**{k: v for k, v in d.items() if k in SkillSubmission.__dataclass_fields__})

    @staticmethod
    def _submission_to_dict(s: SkillSubmission) -> dict:
        d = dataclasses.asdict(s)
        d["direction"] = s.direction.value
        d["status"] = s.status.value
        return d

    @staticmethod
    def _report_from_dict(d: dict) -> Report:
        return Report(**{k: v for k, v in d.items() if k in Report.__dataclass_fields__})

    @staticmethod
    def _report_to_dict(r: Report) -> dict:
        d = dataclasses.asdict(r)
        d["reason"] = r.reason.value
        d["status"] = r.status.value
        return d

    # ------------------------------------------------------------------
    # Skill submissions
    # ------------------------------------------------------------------

    def create_submission(self, submission: SkillSubmission) -> SkillSubmission:
        if not submission.id:
            submission = dataclasses.replace(submission, id=new_id())
        return self._submission_from_dict(self._submissions.insert(self._submission_to_dict(submission)))

    def get_submission(self, submission_id: str) -> SkillSubmission:
        """Look up a submission by ID. Raises NotFound."""
        return self._submission_from_dict(self._submissions.get(submission_id))

    def list_submissions(self, status: Optional[SubmissionStatus] = None) -> list[SkillSubmission]:
        """Return all submissions, optionally filtered by status."""
        wanted = _status_value(SubmissionStatus, status)
        return [
            self._submission_from_dict(d)
            for d in self._submissions.list(lambda d: wanted is None or d.get("status") == wanted)
        ]

    def decide_submission(
        self,
        submission_id: str,
        status: SubmissionStatus,
        decided_by: str,
        rejection_reason: str = "",
    ) -> SkillSubmission:
        """Move a pending submission to approved/rejected.

        Raises AlreadyProcessed if it was already decided, including when
        another moderator decides it concurrently.
        """
        current = self.get_submission(submission_id)
        if current.status != SubmissionStatus.pending:
            raise AlreadyProcessed(f"Skill submission {submission_id} is already {current.status.value}")
        decided = dataclasses.replace(
            current,
            status=SubmissionStatus(status),
            rejection_reason=rejection_reason,
            decided_at=utcnow(),
            decided_by=decided_by,
        )
        try:
            stored = self._submissions.compare_and_set(
                submission_id,
                current.version,
                self._submission_to_dict(decided),
                expect={"status": SubmissionStatus.pending.value},
            )
        except Conflict:
            latest = self.get_submission(submission_id)
            if latest.status != SubmissionStatus.pending:
                raise AlreadyProcessed(
                    f"Skill submission {submission_id} is already {latest.status.value}"
                ) from None
            raise
        return self._submission_from_dict(stored)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def create_report(self, report: Report) -> Report:
        if not report.id:
            report = dataclasses.replace(report, id=new_id())
        return self._report_from_dict(self._reports.insert(self._report_to_dict(report)))

    def get_report(self, report_id: str) -> Report:
        """Look up a report by ID. Raises NotFound."""
        return self._report_from_dict(self._reports.get(report_id))

    def list_reports(self, status: Optional[ReportStatus] = None) -> list[Report]:
        """Return all reports, optionally filtered by status."""
        wanted = _status_value(ReportStatus, status)
        return [
            self._report_from_dict(d)
            for d in self._reports.list(lambda d: wanted is None or d.get("status") == wanted)
        ]

    def decide_report(self, report_id: str, status: ReportStatus, decided_by: str) -> Report:
        """Move a pending report to resolved/dismissed."""
        current = self.get_report(report_id)
        if current.status != ReportStatus.pending:
            raise AlreadyProcessed(f"Report {report_id} is already {current.status.value}")
        decided = dataclasses.replace(
            current,
            status=ReportStatus(status),
            decided_at=utcnow(),
            decided_by=decided_by,
        )
        try:
            stored = self._reports.compare_and_set(
                report_id,
                current.version,
                self._report_to_dict(decided),
                expect={"status": ReportStatus.pending.value},
            )
        except Conflict:
            latest = self.get_report(report_id)
            if latest.status != ReportStatus.pending:
                raise AlreadyProcessed(f"Report {report_id} is already {latest.status.value}") from None
            raise
        return self._report_from_dict(stored)
