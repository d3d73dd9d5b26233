"""Hiring pipeline service.

Composes the state machine, the interview scheduler and note handling behind
the operations the routers call. Every mutating operation runs in one
transaction; notifications go out only after it commits.
"""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from talentflow.core.config import settings
from talentflow.core.exceptions import (
    DuplicateApplicationError,
    JobClosedError,
    NotAuthorizedError,
    NotFoundError,
    PipelineError,
)
from talentflow.models import (
    ApplicationFlag,
    ApplicationNote,
    ApplicationStatus,
    ApplicationStatusHistory,
    Interview,
    InterviewType,
    JobApplication,
    NoteVisibility,
)
from talentflow.services.authorization import (
    AuthorizationProvider,
    MembershipAuthorizationProvider,
    Permission,
    required_role,
)
from talentflow.services.documents import DocumentResolver, SchemeDocumentResolver
from talentflow.services.interview_scheduler import (
    InterviewDetails,
    InterviewScheduler,
    TimeWindow,
)
from talentflow.services.notes import NoteKeeper
from talentflow.services.notifications import (
    LoggingNotificationSink,
    NotificationSink,
    PipelineEvent,
    PipelineEventType,
    RedisNotificationSink,
)
from talentflow.services.state_machine import ApplicationStateMachine
from talentflow.services.stores import (
    PipelineStores,
    TransactionFactory,
    sql_transaction_factory,
)
from talentflow.utils.time import Clock, to_utc_naive, utc_now
from talentflow.utils.validators import dedupe_ids, validate_bulk_transition_limits

logger = logging.getLogger(__name__)


@dataclass
class BulkTransitionResult:
    """Per-item outcome of a bulk status change."""

    succeeded: list[int] = field(default_factory=list)
    failed: dict[int, PipelineError] = field(default_factory=dict)


def transition_permission(target: str) -> str:
    """Return the permission gating a move to ``target``."""
    if target == ApplicationStatus.REJECTED.value:
        return Permission.REJECT_APPLICATION.value
    return Permission.UPDATE_APPLICATION_STATUS.value


@contextmanager
def _logged(operation: str, **context) -> Iterator[None]:
    """Log domain failures with their context and re-raise them unchanged."""
    try:
        yield
    except PipelineError as e:
        details = ", ".join(f"{key}={value}" for key, value in context.items())
        logger.warning(f"{operation} failed ({details}): {e.message}")
        raise


class PipelineService:
    """Core service for the hiring pipeline."""

    def __init__(
        self,
        open_transaction: TransactionFactory,
        authorization: AuthorizationProvider,
        notifications: NotificationSink,
        documents: DocumentResolver,
        clock: Clock = utc_now,
    ):
        self.open_transaction = open_transaction
        self.authorization = authorization
        self.notifications = notifications
        self.documents = documents
        self.clock = clock
        self.state_machine = ApplicationStateMachine(clock)
        self.scheduler = InterviewScheduler(clock)
        self.notes = NoteKeeper(clock)

    # Helpers

    async def _load_application(self, application_id: int) -> JobApplication:
        async with self.open_transaction() as stores:
            application = await stores.applications.get(application_id)
        if application is None:
            raise NotFoundError("application", application_id)
        return application

    async def _load_interview(self, interview_id: int) -> Interview:
        async with self.open_transaction() as stores:
            interview = await stores.interviews.get(interview_id)
        if interview is None:
            raise NotFoundError("interview", interview_id)
        return interview

    async def _authorize(self, actor_id: str, company_id: str, permission: str) -> None:
        # Runs outside any open transaction: the provider is an external call.
        if not await self.authorization.has_role(
            actor_id, company_id, required_role(permission)
        ):
            raise NotAuthorizedError(actor_id, f"Requires {permission}")

    async def _authorize_application(
        self, application_id: int, actor_id: str, permission: str
    ) -> JobApplication:
        application = await self._load_application(application_id)
        await self._authorize(actor_id, application.company_id, permission)
        return application

    async def _viewable_companies(
        self, actor_id: str, company_ids: Iterable[str]
    ) -> set[str]:
        role = required_role(Permission.VIEW_APPLICATIONS.value)
        allowed = set()
        for company_id in set(company_ids):
            if await self.authorization.has_role(actor_id, company_id, role):
                allowed.add(company_id)
        return allowed

    async def _authorize_viewer(
        self, application_id: int, actor_id: str
    ) -> JobApplication:
        """Candidates may always see their own application."""
        application = await self._load_application(application_id)
        if not application.is_owned_by(actor_id):
            await self._authorize(
                actor_id, application.company_id, Permission.VIEW_APPLICATIONS.value
            )
        return application

    async def _close_active_interview(
        self, stores: PipelineStores, application: JobApplication, actor_id: str
    ) -> Interview | None:
        if not application.is_terminal:
            return None
        interview = await stores.interviews.get_active_for_application(application.id)
        if interview is None:
            return None
        self.scheduler.mark_cancelled(
            interview, actor_id, f"application {application.status}"
        )
        await stores.interviews.save(interview)
        return interview

    async def _add_side_effect_note(
        self,
        stores: PipelineStores,
        application_id: int,
        actor_id: str,
        content: str | None,
    ) -> None:
        if content and content.strip():
            await self.notes.add(
                stores, application_id, actor_id, content, NoteVisibility.SHARED.value
            )

    async def _emit(self, event_type: PipelineEventType, **fields) -> None:
        await self.notifications.emit(
            PipelineEvent(event=event_type.value, occurred_at=self.clock(), **fields)
        )

    async def _emit_status_changed(
        self,
        application: JobApplication,
        actor_id: str,
        cancelled: Interview | None = None,
    ) -> None:
        await self._emit(
            PipelineEventType.APPLICATION_STATUS_CHANGED,
            application_id=application.id,
            actor_id=actor_id,
            status=application.status,
            data={"version": application.version},
        )
        if cancelled is not None:
            await self._emit(
                PipelineEventType.INTERVIEW_CANCELLED,
                application_id=application.id,
                actor_id=actor_id,
                interview_id=cancelled.id,
                status=cancelled.status,
                data={"reason": cancelled.cancel_reason},
            )

    # Candidate operations

    async def submit_application(
        self,
        job_id: int,
        candidate_id: str,
        cover_letter: str | None = None,
        resume_ref: str | None = None,
        source: str | None = None,
    ) -> JobApplication:
        """Create an application in ``applied`` for a published job.

        Raises:
            NotFoundError: Unknown job or unresolvable resume reference
            JobClosedError: The job is not accepting applications
            DuplicateApplicationError: The candidate already applied
        """
        with _logged("submit_application", job_id=job_id, candidate_id=candidate_id):
            if resume_ref is not None:
                resolved = await self.documents.resolve(resume_ref)
                if resolved is None:
                    raise NotFoundError("document", resume_ref)
                resume_ref = resolved

            async with self.open_transaction() as stores:
                job = await stores.jobs.get(job_id)
                if job is None:
                    raise NotFoundError("job", job_id)
                if not job.accepts_applications():
                    raise JobClosedError(job_id, job.status)
                if await stores.applications.find_by_job_and_candidate(
                    job_id, candidate_id
                ):
                    raise DuplicateApplicationError(job_id, candidate_id)

                now = self.clock()
                application = JobApplication(
                    job_id=job_id,
                    candidate_id=candidate_id,
                    company_id=job.company_id,
                    status=ApplicationStatus.APPLIED.value,
                    version=1,
                    cover_letter=cover_letter,
                    resume_ref=resume_ref,
                    source=source or settings.default_application_source,
                    created_at=now,
                    updated_at=now,
                )
                try:
                    await stores.applications.add(application)
                except IntegrityError as e:
                    raise DuplicateApplicationError(job_id, candidate_id) from e

                await stores.applications.append_history(
                    ApplicationStatusHistory(
                        application_id=application.id,
                        status=application.status,
                        version=application.version,
                        actor_id=candidate_id,
                        note="Application submitted",
                        created_at=now,
                    )
                )

        logger.info(
            f"Application {application.id} submitted by {candidate_id} for job {job_id}"
        )
        await self._emit(
            PipelineEventType.APPLICATION_SUBMITTED,
            application_id=application.id,
            actor_id=candidate_id,
            status=application.status,
            data={"job_id": job_id},
        )
        return application

    async def withdraw_application(
        self,
        application_id: int,
        candidate_id: str,
        expected_version: int | None = None,
        note: str | None = None,
    ) -> JobApplication:
        """Withdraw on behalf of the owning candidate.

        Without ``expected_version`` the currently stored version is used.
        """
        with _logged(
            "withdraw_application", application_id=application_id, actor_id=candidate_id
        ):
            async with self.open_transaction() as stores:
                application = await stores.applications.get(application_id)
                if application is None:
                    raise NotFoundError("application", application_id)
                if not application.is_owned_by(candidate_id):
                    raise NotAuthorizedError(
                        candidate_id, "Only the candidate can withdraw an application"
                    )

                version = (
                    expected_version
                    if expected_version is not None
                    else application.version
                )
                application = await self.state_machine.transition(
                    stores,
                    application_id,
                    version,
                    ApplicationStatus.WITHDRAWN.value,
                    candidate_id,
                    note or "Withdrawn by candidate",
                )
                cancelled = await self._close_active_interview(
                    stores, application, candidate_id
                )

        await self._emit_status_changed(application, candidate_id, cancelled)
        return application

    # Status changes

    async def transition_status(
        self,
        application_id: int,
        expected_version: int,
        target: str,
        actor_id: str,
        note: str | None = None,
    ) -> JobApplication:
        """Move an application one edge along the pipeline.

        Returns:
            The application carrying its new status and version
        """
        target = ApplicationStatus(target).value
        if target == ApplicationStatus.WITHDRAWN.value:
            return await self.withdraw_application(
                application_id, actor_id, expected_version, note
            )

        with _logged(
            "transition_status",
            application_id=application_id,
            actor_id=actor_id,
            target=target,
        ):
            await self._authorize_application(
                application_id, actor_id, transition_permission(target)
            )
            async with self.open_transaction() as stores:
                application = await self.state_machine.transition(
                    stores, application_id, expected_version, target, actor_id, note
                )
                cancelled = await self._close_active_interview(
                    stores, application, actor_id
                )

        await self._emit_status_changed(application, actor_id, cancelled)
        return application

    async def bulk_transition_status(
        self,
        application_ids: list[int],
        target: str,
        actor_id: str,
        note: str | None = None,
    ) -> BulkTransitionResult:
        """Apply the same move to many applications, each on its own.

        Every item runs in its own transaction against the version it reads,
        so one failing item never blocks the others.

        Raises:
            ValueError: Empty or oversized batch, or unknown status
        """
        target = ApplicationStatus(target).value
        validation = validate_bulk_transition_limits(application_ids)
        if not validation.is_valid:
            raise ValueError(validation.error)
        for warning in validation.warnings:
            logger.info(f"Bulk transition by {actor_id}: {warning}")

        permission = transition_permission(target)
        allowed_companies: dict[str, bool] = {}
        result = BulkTransitionResult()

        for application_id in dedupe_ids(application_ids):
            try:
                application = await self._load_application(application_id)
                company_id = application.company_id
                if company_id not in allowed_companies:
                    try:
                        await self._authorize(actor_id, company_id, permission)
                        allowed_companies[company_id] = True
                    except NotAuthorizedError:
                        allowed_companies[company_id] = False
                if not allowed_companies[company_id]:
                    raise NotAuthorizedError(actor_id, f"Requires {permission}")

                async with self.open_transaction() as stores:
                    current = await stores.applications.get(application_id)
                    if current is None:
                        raise NotFoundError("application", application_id)
                    application = await self.state_machine.transition(
                        stores, application_id, current.version, target, actor_id, note
                    )
                    cancelled = await self._close_active_interview(
                        stores, application, actor_id
                    )
            except PipelineError as e:
                logger.warning(
                    f"Bulk transition of application {application_id} to {target} "
                    f"by {actor_id} failed: {e.message}"
                )
                result.failed[application_id] = e
                continue

            result.succeeded.append(application_id)
            await self._emit_status_changed(application, actor_id, cancelled)

        logger.info(
            f"Bulk transition to {target} by {actor_id}: "
            f"{len(result.succeeded)} succeeded, {len(result.failed)} failed"
        )
        return result

    # Interviews

    async def schedule_interview(
        self,
        application_id: int,
        actor_id: str,
        interviewer_id: str,
        scheduled_at: datetime,
        duration_minutes: int,
        interview_type: str = InterviewType.VIDEO.value,
        location: str | None = None,
        meeting_link: str | None = None,
        participants: list[str] | None = None,
    ) -> Interview:
        details = InterviewDetails(
            interviewer_id=interviewer_id,
            window=TimeWindow(scheduled_at, duration_minutes),
            interview_type=InterviewType(interview_type).value,
            location=location,
            meeting_link=meeting_link,
            participants=participants,
        )

        with _logged(
            "schedule_interview",
            application_id=application_id,
            actor_id=actor_id,
            interviewer_id=interviewer_id,
        ):
            await self._authorize_application(
                application_id, actor_id, Permission.MANAGE_INTERVIEWS.value
            )
            async with self.open_transaction() as stores:
                _, interview = await self.scheduler.schedule(
                    stores, application_id, details, actor_id
                )

        await self._emit(
            PipelineEventType.INTERVIEW_SCHEDULED,
            application_id=application_id,
            actor_id=actor_id,
            interview_id=interview.id,
            status=interview.status,
            data={
                "interviewer_id": interviewer_id,
                "scheduled_at": interview.scheduled_at.isoformat(),
                "duration_minutes": interview.duration_minutes,
            },
        )
        return interview

    async def reschedule_interview(
        self,
        interview_id: int,
        actor_id: str,
        scheduled_at: datetime,
        duration_minutes: int | None = None,
        reason: str | None = None,
    ) -> Interview:
        """Move an interview, keeping its length unless a new one is given."""
        with _logged(
            "reschedule_interview", interview_id=interview_id, actor_id=actor_id
        ):
            existing = await self._load_interview(interview_id)
            application = await self._authorize_application(
                existing.application_id, actor_id, Permission.MANAGE_INTERVIEWS.value
            )
            window = TimeWindow(
                scheduled_at,
                existing.duration_minutes
                if duration_minutes is None
                else duration_minutes,
            )

            async with self.open_transaction() as stores:
                interview = await self.scheduler.reschedule(
                    stores, interview_id, window, reason
                )
                if reason:
                    await self._add_side_effect_note(
                        stores,
                        application.id,
                        actor_id,
                        f"Interview rescheduled: {reason}",
                    )

        await self._emit(
            PipelineEventType.INTERVIEW_RESCHEDULED,
            application_id=application.id,
            actor_id=actor_id,
            interview_id=interview.id,
            status=interview.status,
            data={
                "scheduled_at": interview.scheduled_at.isoformat(),
                "original_scheduled_at": interview.original_scheduled_at.isoformat(),
                "reason": reason,
            },
        )
        return interview

    async def update_interview(
        self,
        interview_id: int,
        actor_id: str,
        interview_type: str | None = None,
        location: str | None = None,
        meeting_link: str | None = None,
        participants: list[str] | None = None,
    ) -> Interview:
        """Change type, place or attendees without moving the interview.

        Raises:
            ValueError: No field to change, or an unknown interview type
        """
        if (
            interview_type is None
            and location is None
            and meeting_link is None
            and participants is None
        ):
            raise ValueError("Nothing to update")
        if interview_type is not None:
            interview_type = InterviewType(interview_type).value

        with _logged("update_interview", interview_id=interview_id, actor_id=actor_id):
            existing = await self._load_interview(interview_id)
            application = await self._authorize_application(
                existing.application_id, actor_id, Permission.MANAGE_INTERVIEWS.value
            )

            async with self.open_transaction() as stores:
                interview = await self.scheduler.update_details(
                    stores,
                    interview_id,
                    interview_type=interview_type,
                    location=location,
                    meeting_link=meeting_link,
                    participants=participants,
                )

        await self._emit(
            PipelineEventType.INTERVIEW_UPDATED,
            application_id=application.id,
            actor_id=actor_id,
            interview_id=interview.id,
            status=interview.status,
            data={
                "interview_type": interview.interview_type,
                "location": interview.location,
                "meeting_link": interview.meeting_link,
            },
        )
        return interview

    async def complete_interview(
        self,
        interview_id: int,
        actor_id: str,
        feedback: str | None = None,
        rating: int | None = None,
        decision: str | None = None,
    ) -> Interview:
        """Record the interview outcome without touching the application status."""
        with _logged("complete_interview", interview_id=interview_id, actor_id=actor_id):
            existing = await self._load_interview(interview_id)
            application = await self._authorize_application(
                existing.application_id, actor_id, Permission.MANAGE_INTERVIEWS.value
            )

            async with self.open_transaction() as stores:
                interview = await self.scheduler.complete(
                    stores, interview_id, actor_id, feedback, rating, decision
                )
                await self._add_side_effect_note(
                    stores, application.id, actor_id, feedback
                )

        await self._emit(
            PipelineEventType.INTERVIEW_COMPLETED,
            application_id=application.id,
            actor_id=actor_id,
            interview_id=interview.id,
            status=interview.status,
            data={"decision": interview.decision, "rating": interview.rating},
        )
        return interview

    async def cancel_interview(
        self,
        interview_id: int,
        actor_id: str,
        reason: str | None = None,
    ) -> Interview:
        with _logged("cancel_interview", interview_id=interview_id, actor_id=actor_id):
            existing = await self._load_interview(interview_id)
            application = await self._authorize_application(
                existing.application_id, actor_id, Permission.MANAGE_INTERVIEWS.value
            )

            async with self.open_transaction() as stores:
                interview = await self.scheduler.cancel(
                    stores, interview_id, actor_id, reason
                )
                if reason:
                    await self._add_side_effect_note(
                        stores,
                        application.id,
                        actor_id,
                        f"Interview cancelled: {reason}",
                    )

        await self._emit(
            PipelineEventType.INTERVIEW_CANCELLED,
            application_id=application.id,
            actor_id=actor_id,
            interview_id=interview.id,
            status=interview.status,
            data={"reason": reason},
        )
        return interview

    # Notes and flags

    async def add_note(
        self,
        application_id: int,
        author_id: str,
        content: str,
        visibility: str = NoteVisibility.SHARED.value,
    ) -> ApplicationNote:
        with _logged("add_note", application_id=application_id, actor_id=author_id):
            await self._authorize_application(
                application_id, author_id, Permission.WRITE_NOTES.value
            )
            async with self.open_transaction() as stores:
                return await self.notes.add(
                    stores, application_id, author_id, content, visibility
                )

    async def update_note(
        self, note_id: int, author_id: str, content: str
    ) -> ApplicationNote:
        with _logged("update_note", note_id=note_id, actor_id=author_id):
            async with self.open_transaction() as stores:
                note = await stores.notes.get(note_id)
            if note is None:
                raise NotFoundError("note", note_id)
            await self._authorize_application(
                note.application_id, author_id, Permission.WRITE_NOTES.value
            )

            async with self.open_transaction() as stores:
                return await self.notes.update(stores, note_id, author_id, content)

    async def set_bookmark(
        self, application_id: int, actor_id: str, value: bool
    ) -> ApplicationFlag:
        with _logged("set_bookmark", application_id=application_id, actor_id=actor_id):
            await self._authorize_application(
                application_id, actor_id, Permission.VIEW_APPLICATIONS.value
            )
            async with self.open_transaction() as stores:
                return await self.notes.set_bookmark(
                    stores, application_id, actor_id, value
                )

    async def mark_viewed(self, application_id: int, actor_id: str) -> ApplicationFlag:
        with _logged("mark_viewed", application_id=application_id, actor_id=actor_id):
            await self._authorize_application(
                application_id, actor_id, Permission.VIEW_APPLICATIONS.value
            )
            async with self.open_transaction() as stores:
                return await self.notes.mark_viewed(stores, application_id, actor_id)

    # Reads

    async def get_application(
        self, application_id: int, actor_id: str
    ) -> JobApplication:
        with _logged("get_application", application_id=application_id, actor_id=actor_id):
            return await self._authorize_viewer(application_id, actor_id)

    async def get_status_history(
        self, application_id: int, actor_id: str
    ) -> list[ApplicationStatusHistory]:
        with _logged(
            "get_status_history", application_id=application_id, actor_id=actor_id
        ):
            await self._authorize_viewer(application_id, actor_id)
            async with self.open_transaction() as stores:
                return await stores.applications.list_history(application_id)

    async def list_interviews(
        self, application_id: int, actor_id: str
    ) -> list[Interview]:
        with _logged("list_interviews", application_id=application_id, actor_id=actor_id):
            await self._authorize_viewer(application_id, actor_id)
            async with self.open_transaction() as stores:
                return await stores.interviews.list_for_application(application_id)

    async def get_interviewer_schedule(
        self, interviewer_id: str, actor_id: str, start: datetime, end: datetime
    ) -> list[Interview]:
        """Active interviews of one interviewer overlapping ``[start, end)``.

        Interviewers see their whole schedule. Anyone else only sees the
        interviews of companies where they may view applications.
        """
        start, end = to_utc_naive(start), to_utc_naive(end)
        if end <= start:
            raise ValueError("Schedule range must end after it starts")

        company_of: dict[int, str] = {}
        async with self.open_transaction() as stores:
            interviews = await stores.interviews.list_for_interviewer(
                interviewer_id, start, end
            )
            if actor_id == interviewer_id:
                return interviews
            for interview in interviews:
                application = await stores.applications.get(interview.application_id)
                company_of[interview.id] = application.company_id

        allowed = await self._viewable_companies(actor_id, company_of.values())
        return [
            interview for interview in interviews if company_of[interview.id] in allowed
        ]

    async def list_my_applications(
        self, candidate_id: str, status: str | None = None
    ) -> list[JobApplication]:
        """The candidate's own applications, newest first."""
        if status is not None:
            status = ApplicationStatus(status).value
        async with self.open_transaction() as stores:
            return await stores.applications.list_for_candidate(candidate_id, status)

    async def list_job_applications(
        self, job_id: int, actor_id: str, status: str | None = None
    ) -> list[JobApplication]:
        """Employer view of the applications to one job, newest first."""
        if status is not None:
            status = ApplicationStatus(status).value
        with _logged("list_job_applications", job_id=job_id, actor_id=actor_id):
            async with self.open_transaction() as stores:
                job = await stores.jobs.get(job_id)
            if job is None:
                raise NotFoundError("job", job_id)
            await self._authorize(
                actor_id, job.company_id, Permission.VIEW_APPLICATIONS.value
            )
            async with self.open_transaction() as stores:
                return await stores.applications.list_for_job(job_id, status)

    async def list_bookmarked_applications(self, actor_id: str) -> list[JobApplication]:
        """Applications the actor bookmarked and may still view."""
        async with self.open_transaction() as stores:
            applications = await stores.applications.list_bookmarked(actor_id)
        allowed = await self._viewable_companies(
            actor_id, (application.company_id for application in applications)
        )
        return [
            application
            for application in applications
            if application.company_id in allowed
        ]

    async def list_notes(
        self, application_id: int, actor_id: str
    ) -> list[ApplicationNote]:
        with _logged("list_notes", application_id=application_id, actor_id=actor_id):
            await self._authorize_application(
                application_id, actor_id, Permission.VIEW_APPLICATIONS.value
            )
            async with self.open_transaction() as stores:
                return await self.notes.visible_notes(stores, application_id, actor_id)

    async def get_flags(
        self, application_id: int, actor_id: str
    ) -> dict[str, ApplicationFlag]:
        with _logged("get_flags", application_id=application_id, actor_id=actor_id):
            await self._authorize_application(
                application_id, actor_id, Permission.VIEW_APPLICATIONS.value
            )
            async with self.open_transaction() as stores:
                flags = await stores.flags.list_for_actor(application_id, actor_id)
        return {flag.flag_type: flag for flag in flags}


def create_notification_sink() -> NotificationSink:
    """Queue notifications on Redis when configured, otherwise log them."""
    if settings.redis_url:
        return RedisNotificationSink()
    return LoggingNotificationSink()


def create_pipeline_service(
    open_transaction: TransactionFactory | None = None,
    authorization: AuthorizationProvider | None = None,
    notifications: NotificationSink | None = None,
    documents: DocumentResolver | None = None,
    clock: Clock = utc_now,
) -> PipelineService:
    """Factory function to create PipelineService with dependencies."""
    return PipelineService(
        open_transaction=open_transaction or sql_transaction_factory(),
        authorization=authorization or MembershipAuthorizationProvider(),
        notifications=notifications or create_notification_sink(),
        documents=documents or SchemeDocumentResolver(),
        clock=clock,
    )
