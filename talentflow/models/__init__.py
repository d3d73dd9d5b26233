"""Database models."""

from talentflow.models.application import (
    STAGE_ORDER,
    TERMINAL_STATUSES,
    ApplicationStatus,
    ApplicationStatusHistory,
    JobApplication,
)
from talentflow.models.company import CompanyMember, JobPosting, JobStatus
from talentflow.models.interview import (
    ACTIVE_INTERVIEW_STATUSES,
    Interview,
    InterviewDecision,
    InterviewerScheduleLock,
    InterviewStatus,
    InterviewType,
)
from talentflow.models.note import (
    ApplicationFlag,
    ApplicationNote,
    FlagType,
    NoteVisibility,
)

__all__ = [
    "ACTIVE_INTERVIEW_STATUSES",
    "STAGE_ORDER",
    "TERMINAL_STATUSES",
    "ApplicationFlag",
    "ApplicationNote",
    "ApplicationStatus",
    "ApplicationStatusHistory",
    "CompanyMember",
    "FlagType",
    "Interview",
    "InterviewDecision",
    "InterviewStatus",
    "InterviewType",
    "InterviewerScheduleLock",
    "JobApplication",
    "JobPosting",
    "JobStatus",
    "NoteVisibility",
]
