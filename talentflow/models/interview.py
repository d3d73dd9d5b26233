"""Interview models."""

from datetime import datetime, timedelta
from enum import StrEnum

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from talentflow.core.storage import Base
from talentflow.utils.time import utc_now


class InterviewStatus(StrEnum):
    SCHEDULED = "scheduled"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InterviewType(StrEnum):
    PHONE = "phone"
    VIDEO = "video"
    ONSITE = "onsite"


class InterviewDecision(StrEnum):
    PASS = "pass"
    FAIL = "fail"
    HOLD = "hold"


ACTIVE_INTERVIEW_STATUSES: frozenset[str] = frozenset(
    {InterviewStatus.SCHEDULED.value, InterviewStatus.RESCHEDULED.value}
)

_ACTIVE_PREDICATE = text("status IN ('scheduled', 'rescheduled')")


class Interview(Base):
    """Model for an interview booked against an application."""

    __tablename__ = "interviews"
    __table_args__ = (
        Index(
            "ix_interviews_interviewer_window",
            "interviewer_id",
            "scheduled_at",
            "ends_at",
        ),
        Index(
            "uq_interviews_active_application",
            "application_id",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("job_applications.id"), nullable=False, index=True
    )
    interviewer_id: Mapped[str] = mapped_column(String(255), nullable=False)
    # Informational only; conflicts are checked against interviewer_id.
    participants: Mapped[list | None] = mapped_column(JSON, nullable=True)
    interview_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InterviewType.VIDEO
    )
    scheduled_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    original_scheduled_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    meeting_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InterviewStatus.SCHEDULED, index=True
    )
    reschedule_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    decision: Mapped[str | None] = mapped_column(String(20), nullable=True)
    completed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    cancel_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_INTERVIEW_STATUSES

    def set_window(self, start: datetime, duration_minutes: int) -> None:
        """Move the interview to ``[start, start + duration)``."""
        self.scheduled_at = start
        self.duration_minutes = duration_minutes
        self.ends_at = start + timedelta(minutes=duration_minutes)


class InterviewerScheduleLock(Base):
    """One row per interviewer, written to serialize check-then-book."""

    __tablename__ = "interviewer_schedule_locks"

    interviewer_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    acquired_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
