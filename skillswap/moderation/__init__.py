"""Moderation Controller — skill review, reports, bans, and admin reporting."""

from skillswap.moderation.controller import ModerationController
from skillswap.moderation.models import (
    BanResult,
    ForceCancelOutcome,
    PlatformStats,
    Report,
    ReportReason,
    ReportStatus,
    SkillSubmission,
    SubmissionStatus,
)
from skillswap.moderation.reports import REPORT_FORMATS, REPORT_KINDS, AdminReporter
from skillswap.moderation.store import ModerationStore

__all__ = [
    "AdminReporter",
    "BanResult",
    "ForceCancelOutcome",
    "ModerationController",
    "ModerationStore",
    "PlatformStats",
    "REPORT_FORMATS",
    "REPORT_KINDS",
    "Report",
    "ReportReason",
    "ReportStatus",
    "SkillSubmission",
    "SubmissionStatus",
]
