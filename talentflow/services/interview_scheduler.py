"""Interview scheduling with double-booking prevention.

An interviewer never holds two active interviews whose windows overlap, and
an application never has more than one active interview. Windows are
half-open, so back-to-back interviews do not clash. Check-then-book runs
under a per-interviewer lock taken inside the booking transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from talentflow.core.exceptions import (
    AlreadyTerminalError,
    InterviewConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from talentflow.models import (
    TERMINAL_STATUSES,
    ApplicationStatus,
    Interview,
    InterviewDecision,
    InterviewStatus,
    InterviewType,
    JobApplication,
)
from talentflow.services.stores import PipelineStores
from talentflow.utils.time import Clock, to_utc_naive, utc_now
from talentflow.utils.validators import validate_duration

logger = logging.getLogger(__name__)

SCHEDULABLE_STATUSES = frozenset(
    {ApplicationStatus.SHORTLISTED.value, ApplicationStatus.INTERVIEW.value}
)


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval ``[start, start + duration)`` in naive UTC."""

    start: datetime
    duration_minutes: int

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValueError("Interview duration must be positive")
        object.__setattr__(self, "start", to_utc_naive(self.start))

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

    def overlaps(self, other: "TimeWindow") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass
class InterviewDetails:
    """Fields supplied when booking an interview."""

    interviewer_id: str
    window: TimeWindow
    interview_type: str = InterviewType.VIDEO.value
    location: str | None = None
    meeting_link: str | None = None
    participants: list[str] | None = None


class InterviewScheduler:
    """Books, moves, completes and cancels interviews."""

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    @staticmethod
    def check_window(window: TimeWindow) -> None:
        result = validate_duration(window.duration_minutes)
        if not result.is_valid:
            raise ValueError(result.error)

    async def _load_interview(
        self, stores: PipelineStores, interview_id: int
    ) -> Interview:
        interview = await stores.interviews.get(interview_id, for_update=True)
        if interview is None:
            raise NotFoundError("interview", interview_id)
        if not interview.is_active:
            raise AlreadyTerminalError("interview", interview_id, interview.status)
        return interview

    async def _ensure_interviewer_free(
        self,
        stores: PipelineStores,
        interviewer_id: str,
        window: TimeWindow,
        exclude_interview_id: int | None = None,
    ) -> None:
        await stores.interviews.lock_interviewer(interviewer_id, self.clock())
        clashes = await stores.interviews.find_overlapping(
            interviewer_id,
            window.start,
            window.end,
            exclude_interview_id=exclude_interview_id,
        )
        if clashes:
            clash = clashes[0]
            logger.warning(
                f"Interviewer {interviewer_id} is busy at {window.start.isoformat()}: "
                f"clashes with interview {clash.id}"
            )
            raise InterviewConflictError(
                clash.id,
                f"interviewer {interviewer_id} is booked from "
                f"{clash.scheduled_at.isoformat()} to {clash.ends_at.isoformat()}",
            )

    async def schedule(
        self,
        stores: PipelineStores,
        application_id: int,
        details: InterviewDetails,
        actor_id: str,
    ) -> tuple[JobApplication, Interview]:
        """Book the active interview of an application.

        Raises:
            NotFoundError: No such application
            AlreadyTerminalError: The application is closed
            InvalidTransitionError: The application is not shortlisted or interviewing
            InterviewConflictError: The application already has an active
                interview, or the interviewer is busy
            ValueError: The duration is out of bounds
        """
        self.check_window(details.window)

        application = await stores.applications.get(application_id, for_update=True)
        if application is None:
            raise NotFoundError("application", application_id)
        if application.status in TERMINAL_STATUSES:
            raise AlreadyTerminalError("application", application_id, application.status)
        if application.status not in SCHEDULABLE_STATUSES:
            raise InvalidTransitionError(
                application.status,
                ApplicationStatus.INTERVIEW.value,
                "interviews need a shortlisted application",
            )

        active = await stores.interviews.get_active_for_application(application_id)
        if active is not None:
            raise InterviewConflictError(
                active.id, f"application {application_id} already has an active interview"
            )

        await self._ensure_interviewer_free(stores, details.interviewer_id, details.window)

        now = self.clock()
        interview = Interview(
            application_id=application_id,
            interviewer_id=details.interviewer_id,
            participants=details.participants,
            interview_type=InterviewType(details.interview_type).value,
            original_scheduled_at=details.window.start,
            location=details.location,
            meeting_link=details.meeting_link,
            status=InterviewStatus.SCHEDULED.value,
            created_by=actor_id,
            created_at=now,
            updated_at=now,
        )
        interview.set_window(details.window.start, details.window.duration_minutes)
        await stores.interviews.add(interview)

        logger.info(
            f"Interview {interview.id} booked for application {application_id} "
            f"with {details.interviewer_id} at {details.window.start.isoformat()}"
        )
        return application, interview

    async def reschedule(
        self,
        stores: PipelineStores,
        interview_id: int,
        window: TimeWindow,
        reason: str | None = None,
    ) -> Interview:
        """Move an active interview; it no longer conflicts with itself."""
        self.check_window(window)
        interview = await self._load_interview(stores, interview_id)

        await self._ensure_interviewer_free(
            stores, interview.interviewer_id, window, exclude_interview_id=interview.id
        )

        previous = interview.scheduled_at
        interview.set_window(window.start, window.duration_minutes)
        interview.status = InterviewStatus.RESCHEDULED.value
        interview.reschedule_reason = reason
        interview.updated_at = self.clock()
        await stores.interviews.save(interview)

        logger.info(
            f"Interview {interview_id} moved from {previous.isoformat()} "
            f"to {window.start.isoformat()}"
        )
        return interview

    async def update_details(
        self,
        stores: PipelineStores,
        interview_id: int,
        interview_type: str | None = None,
        location: str | None = None,
        meeting_link: str | None = None,
        participants: list[str] | None = None,
    ) -> Interview:
        """Edit the logistics of an active interview.

        Arguments left as None keep their stored value. The window, the
        interviewer and the status are untouched, so no conflict check runs.
        """
        interview = await self._load_interview(stores, interview_id)

        if interview_type is not None:
            interview.interview_type = InterviewType(interview_type).value
        if location is not None:
            interview.location = location
        if meeting_link is not None:
            interview.meeting_link = meeting_link
        if participants is not None:
            interview.participants = list(participants)
        interview.updated_at = self.clock()
        await stores.interviews.save(interview)

        logger.info(f"Interview {interview_id} details updated")
        return interview

    async def complete(
        self,
        stores: PipelineStores,
        interview_id: int,
        actor_id: str,
        feedback: str | None = None,
        rating: int | None = None,
        decision: str | None = None,
    ) -> Interview:
        """Record the outcome; the application status is left to the hiring team."""
        if rating is not None and not 1 <= rating <= 5:
            raise ValueError("Rating must be between 1 and 5")

        interview = await self._load_interview(stores, interview_id)

        now = self.clock()
        interview.status = InterviewStatus.COMPLETED.value
        interview.feedback = feedback
        interview.rating = rating
        interview.decision = InterviewDecision(decision).value if decision else None
        interview.completed_by = actor_id
        interview.completed_at = now
        interview.updated_at = now
        await stores.interviews.save(interview)

        logger.info(f"Interview {interview_id} completed by {actor_id}")
        return interview

    async def cancel(
        self,
        stores: PipelineStores,
        interview_id: int,
        actor_id: str,
        reason: str | None = None,
    ) -> Interview:
        interview = await self._load_interview(stores, interview_id)
        self.mark_cancelled(interview, actor_id, reason)
        await stores.interviews.save(interview)
        return interview

    def mark_cancelled(
        self, interview: Interview, actor_id: str, reason: str | None
    ) -> None:
        now = self.clock()
        interview.status = InterviewStatus.CANCELLED.value
        interview.cancel_reason = reason
        interview.cancelled_by = actor_id
        interview.cancelled_at = now
        interview.updated_at = now
        logger.info(f"Interview {interview.id} cancelled by {actor_id}: {reason}")
