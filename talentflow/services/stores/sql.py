"""SQLAlchemy implementations of the pipeline stores."""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from talentflow.core.storage import async_session
from talentflow.models import (
    ACTIVE_INTERVIEW_STATUSES,
    ApplicationFlag,
    ApplicationNote,
    ApplicationStatusHistory,
    FlagType,
    Interview,
    InterviewerScheduleLock,
    JobApplication,
    JobPosting,
)
from talentflow.services.stores.base import (
    ApplicationStore,
    FlagStore,
    InterviewStore,
    JobStore,
    NoteStore,
    PipelineStores,
    TransactionFactory,
)

logger = logging.getLogger(__name__)


class SqlApplicationStore(ApplicationStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(
        self, application_id: int, for_update: bool = False
    ) -> JobApplication | None:
        return await self.session.get(
            JobApplication, application_id, with_for_update=for_update
        )

    async def find_by_job_and_candidate(
        self, job_id: int, candidate_id: str
    ) -> JobApplication | None:
        result = await self.session.execute(
            select(JobApplication).where(
                JobApplication.job_id == job_id,
                JobApplication.candidate_id == candidate_id,
            )
        )
        return result.scalar_one_or_none()

    async def _list(self, query, status: str | None) -> list[JobApplication]:
        if status is not None:
            query = query.where(JobApplication.status == status)
        result = await self.session.execute(
            query.order_by(JobApplication.created_at.desc(), JobApplication.id.desc())
        )
        return list(result.scalars().all())

    async def list_for_candidate(
        self, candidate_id: str, status: str | None = None
    ) -> list[JobApplication]:
        return await self._list(
            select(JobApplication).where(JobApplication.candidate_id == candidate_id),
            status,
        )

    async def list_for_job(
        self, job_id: int, status: str | None = None
    ) -> list[JobApplication]:
        return await self._list(
            select(JobApplication).where(JobApplication.job_id == job_id), status
        )

    async def list_bookmarked(self, actor_id: str) -> list[JobApplication]:
        result = await self.session.execute(
            select(JobApplication)
            .join(ApplicationFlag, ApplicationFlag.application_id == JobApplication.id)
            .where(
                ApplicationFlag.actor_id == actor_id,
                ApplicationFlag.flag_type == FlagType.BOOKMARK.value,
                ApplicationFlag.value.is_(True),
            )
            .order_by(ApplicationFlag.updated_at.desc(), JobApplication.id.desc())
        )
        return list(result.scalars().all())

    async def add(self, application: JobApplication) -> JobApplication:
        self.session.add(application)
        await self.session.flush()
        return application

    async def compare_and_set_status(
        self,
        application_id: int,
        expected_version: int,
        status: str,
        updated_at: datetime,
    ) -> int | None:
        result = await self.session.execute(
            update(JobApplication)
            .where(
                JobApplication.id == application_id,
                JobApplication.version == expected_version,
            )
            .values(
                status=status,
                version=JobApplication.version + 1,
                updated_at=updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None

        # Refresh the identity-mapped instance with the committed values.
        await self.session.get(JobApplication, application_id, populate_existing=True)
        return expected_version + 1

    async def append_history(self, entry: ApplicationStatusHistory) -> None:
        self.session.add(entry)
        await self.session.flush()

    async def list_history(self, application_id: int) -> list[ApplicationStatusHistory]:
        result = await self.session.execute(
            select(ApplicationStatusHistory)
            .where(ApplicationStatusHistory.application_id == application_id)
            .order_by(ApplicationStatusHistory.id)
        )
        return list(result.scalars().all())


class SqlInterviewStore(InterviewStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(
        self, interview_id: int, for_update: bool = False
    ) -> Interview | None:
        return await self.session.get(
            Interview, interview_id, with_for_update=for_update
        )

    async def get_active_for_application(self, application_id: int) -> Interview | None:
        result = await self.session.execute(
            select(Interview).where(
                Interview.application_id == application_id,
                Interview.status.in_(ACTIVE_INTERVIEW_STATUSES),
            )
        )
        return result.scalars().first()

    async def list_for_application(self, application_id: int) -> list[Interview]:
        result = await self.session.execute(
            select(Interview)
            .where(Interview.application_id == application_id)
            .order_by(Interview.scheduled_at, Interview.id)
        )
        return list(result.scalars().all())

    async def lock_interviewer(self, interviewer_id: str, now: datetime) -> None:
        # Writing the lock row holds a row lock (PostgreSQL) or the database
        # write lock (SQLite) until the transaction ends.
        touch = (
            update(InterviewerScheduleLock)
            .where(InterviewerScheduleLock.interviewer_id == interviewer_id)
            .values(acquired_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(touch)
        if result.rowcount:
            return

        try:
            async with self.session.begin_nested():
                self.session.add(
                    InterviewerScheduleLock(interviewer_id=interviewer_id, acquired_at=now)
                )
        except IntegrityError:
            logger.debug(f"Lock row for interviewer {interviewer_id} created concurrently")
            await self.session.execute(touch)

    async def find_overlapping(
        self,
        interviewer_id: str,
        start: datetime,
        end: datetime,
        exclude_interview_id: int | None = None,
    ) -> list[Interview]:
        query = select(Interview).where(
            Interview.interviewer_id == interviewer_id,
            Interview.status.in_(ACTIVE_INTERVIEW_STATUSES),
            Interview.scheduled_at < end,
            Interview.ends_at > start,
        )
        if exclude_interview_id is not None:
            query = query.where(Interview.id != exclude_interview_id)

        result = await self.session.execute(
            query.order_by(Interview.scheduled_at, Interview.id)
        )
        return list(result.scalars().all())

    async def list_for_interviewer(
        self, interviewer_id: str, start: datetime, end: datetime
    ) -> list[Interview]:
        return await self.find_overlapping(interviewer_id, start, end)

    async def add(self, interview: Interview) -> Interview:
        self.session.add(interview)
        await self.session.flush()
        return interview

    async def save(self, interview: Interview) -> Interview:
        await self.session.flush()
        return interview


class SqlNoteStore(NoteStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, note_id: int) -> ApplicationNote | None:
        return await self.session.get(ApplicationNote, note_id)

    async def add(self, note: ApplicationNote) -> ApplicationNote:
        self.session.add(note)
        await self.session.flush()
        return note

    async def save(self, note: ApplicationNote) -> ApplicationNote:
        await self.session.flush()
        return note

    async def list_for_application(self, application_id: int) -> list[ApplicationNote]:
        result = await self.session.execute(
            select(ApplicationNote)
            .where(ApplicationNote.application_id == application_id)
            .order_by(ApplicationNote.created_at, ApplicationNote.id)
        )
        return list(result.scalars().all())


class SqlFlagStore(FlagStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(
        self, application_id: int, actor_id: str, flag_type: str
    ) -> ApplicationFlag | None:
        result = await self.session.execute(
            select(ApplicationFlag).where(
                ApplicationFlag.application_id == application_id,
                ApplicationFlag.actor_id == actor_id,
                ApplicationFlag.flag_type == flag_type,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        application_id: int,
        actor_id: str,
        flag_type: str,
        value: bool,
        updated_at: datetime,
    ) -> ApplicationFlag:
        flag = await self.get(application_id, actor_id, flag_type)
        if flag is None:
            try:
                async with self.session.begin_nested():
                    flag = ApplicationFlag(
                        application_id=application_id,
                        actor_id=actor_id,
                        flag_type=flag_type,
                        value=value,
                        updated_at=updated_at,
                    )
                    self.session.add(flag)
                return flag
            except IntegrityError:
                flag = await self.get(application_id, actor_id, flag_type)
                if flag is None:
                    raise

        flag.value = value
        flag.updated_at = updated_at
        await self.session.flush()
        return flag

    async def list_for_actor(
        self, application_id: int, actor_id: str
    ) -> list[ApplicationFlag]:
        result = await self.session.execute(
            select(ApplicationFlag)
            .where(
                ApplicationFlag.application_id == application_id,
                ApplicationFlag.actor_id == actor_id,
            )
            .order_by(ApplicationFlag.flag_type)
        )
        return list(result.scalars().all())


class SqlJobStore(JobStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, job_id: int) -> JobPosting | None:
        return await self.session.get(JobPosting, job_id)


def build_sql_stores(session: AsyncSession) -> PipelineStores:
    """Bind every store to one session."""
    return PipelineStores(
        applications=SqlApplicationStore(session),
        interviews=SqlInterviewStore(session),
        notes=SqlNoteStore(session),
        flags=SqlFlagStore(session),
        jobs=SqlJobStore(session),
    )


def sql_transaction_factory(
    session_factory: Callable[[], AsyncSession] = async_session,
) -> TransactionFactory:
    """Create a factory opening one session and one transaction per call."""

    @asynccontextmanager
    async def transaction() -> AsyncIterator[PipelineStores]:
        async with session_factory() as session:
            async with session.begin():
                yield build_sql_stores(session)

    return transaction
