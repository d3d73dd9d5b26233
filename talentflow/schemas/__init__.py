"""Pydantic schemas for request/response validation."""

from talentflow.schemas.application import (
    ApplicationResponse,
    BulkTransitionRequest,
    BulkTransitionResponse,
    StatusHistoryEntry,
    SubmitApplicationRequest,
    TransitionRequest,
    WithdrawRequest,
)
from talentflow.schemas.interview import (
    CancelInterviewRequest,
    CompleteInterviewRequest,
    InterviewResponse,
    RescheduleInterviewRequest,
    ScheduleInterviewRequest,
    UpdateInterviewRequest,
)
from talentflow.schemas.note import (
    BookmarkRequest,
    FlagResponse,
    FlagsResponse,
    NoteCreateRequest,
    NoteResponse,
    NoteUpdateRequest,
)

__all__ = [
    "ApplicationResponse",
    "BookmarkRequest",
    "BulkTransitionRequest",
    "BulkTransitionResponse",
    "CancelInterviewRequest",
    "CompleteInterviewRequest",
    "FlagResponse",
    "FlagsResponse",
    "InterviewResponse",
    "NoteCreateRequest",
    "NoteResponse",
    "NoteUpdateRequest",
    "RescheduleInterviewRequest",
    "ScheduleInterviewRequest",
    "StatusHistoryEntry",
    "SubmitApplicationRequest",
    "TransitionRequest",
    "UpdateInterviewRequest",
    "WithdrawRequest",
]
