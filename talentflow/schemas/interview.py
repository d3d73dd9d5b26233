"""Schemas for interview requests and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from talentflow.models import InterviewDecision, InterviewStatus, InterviewType


class ScheduleInterviewRequest(BaseModel):
    interviewer_id: str = Field(..., min_length=1, description="Primary interviewer")
    scheduled_at: datetime = Field(..., description="Start time, UTC if no offset")
    duration_minutes: int = Field(..., ge=1)
    interview_type: InterviewType = InterviewType.VIDEO
    location: str | None = None
    meeting_link: str | None = None
    participants: list[str] | None = Field(
        default=None, description="Additional attendees, not checked for conflicts"
    )


class RescheduleInterviewRequest(BaseModel):
    scheduled_at: datetime
    duration_minutes: int | None = Field(
        default=None, ge=1, description="Keeps the current length when omitted"
    )
    reason: str | None = None


class UpdateInterviewRequest(BaseModel):
    """Logistics changes; omitted fields keep their value."""

    interview_type: InterviewType | None = None
    location: str | None = Field(default=None, max_length=200)
    meeting_link: str | None = Field(default=None, max_length=500)
    participants: list[str] | None = None


class CompleteInterviewRequest(BaseModel):
    feedback: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    decision: InterviewDecision | None = None


class CancelInterviewRequest(BaseModel):
    reason: str | None = None


class InterviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    interviewer_id: str
    participants: list[str] | None = None
    interview_type: InterviewType
    scheduled_at: datetime
    duration_minutes: int
    ends_at: datetime
    original_scheduled_at: datetime
    location: str | None = None
    meeting_link: str | None = None
    status: InterviewStatus
    reschedule_reason: str | None = None
    feedback: str | None = None
    rating: int | None = None
    decision: InterviewDecision | None = None
    completed_by: str | None = None
    completed_at: datetime | None = None
    cancel_reason: str | None = None
    cancelled_by: str | None = None
    cancelled_at: datetime | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime
