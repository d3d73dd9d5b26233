"""Store interfaces the pipeline engines persist through.

Every store call is a blocking round trip from the caller's point of view.
Stores never commit: one transaction spans a whole pipeline operation and
is opened by a ``TransactionFactory``.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime

from talentflow.models import (
    ApplicationFlag,
    ApplicationNote,
    ApplicationStatusHistory,
    Interview,
    JobApplication,
    JobPosting,
)


class ApplicationStore(ABC):
    """Persists applications and their append-only status history."""

    @abstractmethod
    async def get(
        self, application_id: int, for_update: bool = False
    ) -> JobApplication | None:
        """Load one application.

        Args:
            application_id: Application primary key
            for_update: Hold a row lock on the application until commit

        Returns:
            The application, or None when it does not exist
        """
        pass

    @abstractmethod
    async def find_by_job_and_candidate(
        self, job_id: int, candidate_id: str
    ) -> JobApplication | None:
        pass

    @abstractmethod
    async def list_for_candidate(
        self, candidate_id: str, status: str | None = None
    ) -> list[JobApplication]:
        """Return a candidate's applications, newest first."""
        pass

    @abstractmethod
    async def list_for_job(
        self, job_id: int, status: str | None = None
    ) -> list[JobApplication]:
        """Return the applications to one job, newest first."""
        pass

    @abstractmethod
    async def list_bookmarked(self, actor_id: str) -> list[JobApplication]:
        """Return the applications an actor currently has bookmarked."""
        pass

    @abstractmethod
    async def add(self, application: JobApplication) -> JobApplication:
        """Insert a new application and assign its id."""
        pass

    @abstractmethod
    async def compare_and_set_status(
        self,
        application_id: int,
        expected_version: int,
        status: str,
        updated_at: datetime,
    ) -> int | None:
        """Conditionally write a new status.

        The write only applies when the stored version still equals
        ``expected_version``; the version is then incremented.

        Returns:
            The new version, or None when no row matched
        """
        pass

    @abstractmethod
    async def append_history(self, entry: ApplicationStatusHistory) -> None:
        pass

    @abstractmethod
    async def list_history(self, application_id: int) -> list[ApplicationStatusHistory]:
        """Return the history oldest first."""
        pass


class InterviewStore(ABC):
    """Persists interviews and owns the per-interviewer active-window index."""

    @abstractmethod
    async def get(
        self, interview_id: int, for_update: bool = False
    ) -> Interview | None:
        pass

    @abstractmethod
    async def get_active_for_application(self, application_id: int) -> Interview | None:
        pass

    @abstractmethod
    async def list_for_application(self, application_id: int) -> list[Interview]:
        pass

    @abstractmethod
    async def lock_interviewer(self, interviewer_id: str, now: datetime) -> None:
        """Serialize schedule changes for one interviewer until commit.

        Must be called before ``find_overlapping`` in any transaction that
        goes on to insert or move an interview for this interviewer.
        """
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        interviewer_id: str,
        start: datetime,
        end: datetime,
        exclude_interview_id: int | None = None,
    ) -> list[Interview]:
        """Find active interviews intersecting the half-open ``[start, end)``."""
        pass

    @abstractmethod
    async def list_for_interviewer(
        self, interviewer_id: str, start: datetime, end: datetime
    ) -> list[Interview]:
        """List active interviews of one interviewer within a range."""
        pass

    @abstractmethod
    async def add(self, interview: Interview) -> Interview:
        pass

    @abstractmethod
    async def save(self, interview: Interview) -> Interview:
        pass


class NoteStore(ABC):
    """Persists application notes."""

    @abstractmethod
    async def get(self, note_id: int) -> ApplicationNote | None:
        pass

    @abstractmethod
    async def add(self, note: ApplicationNote) -> ApplicationNote:
        pass

    @abstractmethod
    async def save(self, note: ApplicationNote) -> ApplicationNote:
        pass

    @abstractmethod
    async def list_for_application(self, application_id: int) -> list[ApplicationNote]:
        pass


class FlagStore(ABC):
    """Persists advisory per-actor flags keyed by (application, actor, type)."""

    @abstractmethod
    async def get(
        self, application_id: int, actor_id: str, flag_type: str
    ) -> ApplicationFlag | None:
        pass

    @abstractmethod
    async def upsert(
        self,
        application_id: int,
        actor_id: str,
        flag_type: str,
        value: bool,
        updated_at: datetime,
    ) -> ApplicationFlag:
        """Write the flag, last write wins."""
        pass

    @abstractmethod
    async def list_for_actor(
        self, application_id: int, actor_id: str
    ) -> list[ApplicationFlag]:
        pass


class JobStore(ABC):
    """Read-only access to the job catalogue."""

    @abstractmethod
    async def get(self, job_id: int) -> JobPosting | None:
        pass


@dataclass
class PipelineStores:
    """All stores bound to one open transaction."""

    applications: ApplicationStore
    interviews: InterviewStore
    notes: NoteStore
    flags: FlagStore
    jobs: JobStore


# Entering the context begins a transaction; leaving it commits, and an
# exception (cancellation included) rolls it back.
TransactionFactory = Callable[[], AbstractAsyncContextManager[PipelineStores]]
