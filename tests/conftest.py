"""Pytest configuration and fixtures."""

import os
import sys

import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables before importing talentflow modules
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ["REDIS_URL"] = ""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from talentflow.core.storage import configure_sqlite_transactions, init_models  # noqa: E402
from talentflow.models import (  # noqa: E402
    STAGE_ORDER,
    ApplicationStatus,
    CompanyMember,
    JobPosting,
    JobStatus,
)
from talentflow.services.authorization import MembershipAuthorizationProvider  # noqa: E402
from talentflow.services.documents import SchemeDocumentResolver  # noqa: E402
from talentflow.services.notifications import NotificationSink, PipelineEvent  # noqa: E402
from talentflow.services.pipeline_service import PipelineService  # noqa: E402
from talentflow.services.stores import sql_transaction_factory  # noqa: E402

COMPANY = "acme"
OTHER_COMPANY = "globex"

CANDIDATE = "candidate-1"
OTHER_CANDIDATE = "candidate-2"
RECRUITER = "recruiter-1"
SECOND_RECRUITER = "recruiter-2"
VIEWER = "viewer-1"
OUTSIDER = "recruiter-globex"


class RecordingSink(NotificationSink):
    """Notification sink keeping every event in memory."""

    def __init__(self):
        self.events: list[PipelineEvent] = []

    async def emit(self, event: PipelineEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[PipelineEvent]:
        return [event for event in self.events if event.event == event_type]


@pytest.fixture
async def engine(tmp_path):
    """Fresh file-backed SQLite database per test."""
    bind = configure_sqlite_transactions(
        create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'pipeline.db'}",
            poolclass=NullPool,
        )
    )
    await init_models(bind)
    yield bind
    await bind.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def open_transaction(session_factory):
    return sql_transaction_factory(session_factory)


@pytest.fixture
async def jobs(session_factory):
    """Seed job postings and team members; returns job ids by name."""
    async with session_factory() as session:
        async with session.begin():
            published = JobPosting(
                company_id=COMPANY, title="Backend Engineer", status=JobStatus.PUBLISHED.value
            )
            second = JobPosting(
                company_id=COMPANY, title="Data Engineer", status=JobStatus.PUBLISHED.value
            )
            closed = JobPosting(
                company_id=COMPANY, title="Office Manager", status=JobStatus.CLOSED.value
            )
            foreign = JobPosting(
                company_id=OTHER_COMPANY, title="Designer", status=JobStatus.PUBLISHED.value
            )
            session.add_all([published, second, closed, foreign])
            session.add_all(
                [
                    CompanyMember(company_id=COMPANY, actor_id=RECRUITER, role="recruiter"),
                    CompanyMember(
                        company_id=COMPANY, actor_id=SECOND_RECRUITER, role="admin"
                    ),
                    CompanyMember(company_id=COMPANY, actor_id=VIEWER, role="viewer"),
                    CompanyMember(
                        company_id=OTHER_COMPANY, actor_id=OUTSIDER, role="owner"
                    ),
                ]
            )
            await session.flush()
            ids = {
                "published": published.id,
                "second": second.id,
                "closed": closed.id,
                "foreign": foreign.id,
            }
    return ids


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def pipeline(open_transaction, session_factory, sink, jobs):
    return PipelineService(
        open_transaction=open_transaction,
        authorization=MembershipAuthorizationProvider(session_factory),
        notifications=sink,
        documents=SchemeDocumentResolver(["s3", "https"]),
    )


@pytest.fixture
def submit(pipeline, jobs):
    """Submit an application to the published job."""

    async def _submit(candidate_id: str = CANDIDATE, job: str = "published"):
        return await pipeline.submit_application(
            jobs[job], candidate_id, cover_letter="Hello", resume_ref="s3://cv/1.pdf"
        )

    return _submit


@pytest.fixture
def advance(pipeline):
    """Walk an application forward one stage at a time until ``target``."""

    async def _advance(application, target: str, actor_id: str = RECRUITER):
        start = STAGE_ORDER.index(ApplicationStatus(application.status))
        for stage in STAGE_ORDER[start + 1 :]:
            application = await pipeline.transition_status(
                application.id, application.version, stage.value, actor_id
            )
            if stage.value == target:
                break
        return application

    return _advance
