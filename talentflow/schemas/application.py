"""Schemas for application requests and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from talentflow.models import ApplicationStatus


class SubmitApplicationRequest(BaseModel):
    """Candidate submission for a job posting."""

    job_id: int = Field(..., ge=1, description="Job posting to apply to")
    cover_letter: str | None = Field(None, description="Cover letter text")
    resume_ref: str | None = Field(
        None, description="Reference to a resume in document storage"
    )
    source: str | None = Field(
        None, max_length=50, description="Origin tag, defaults to the portal"
    )


class TransitionRequest(BaseModel):
    """Status change guarded by the version the caller last read."""

    expected_version: int = Field(..., ge=1)
    status: ApplicationStatus
    note: str | None = Field(None, description="Recorded in the status history")


class BulkTransitionRequest(BaseModel):
    """Same status change applied to many applications."""

    application_ids: list[int] = Field(..., min_length=1)
    status: ApplicationStatus
    note: str | None = None


class WithdrawRequest(BaseModel):
    expected_version: int | None = Field(
        None, ge=1, description="Omit to withdraw whatever version is stored"
    )
    note: str | None = None


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    candidate_id: str
    company_id: str
    status: ApplicationStatus
    version: int
    cover_letter: str | None = None
    resume_ref: str | None = None
    source: str
    created_at: datetime
    updated_at: datetime


class StatusHistoryEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: ApplicationStatus
    version: int
    actor_id: str
    note: str | None = None
    created_at: datetime


class BulkTransitionFailure(BaseModel):
    application_id: int
    error: str = Field(..., description="Error kind, e.g. AlreadyTerminalError")
    detail: str


class BulkTransitionResponse(BaseModel):
    """Per-item report; failures never fail the whole batch."""

    succeeded: list[int]
    failed: list[BulkTransitionFailure]
