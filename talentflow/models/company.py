"""Read-side models for job postings and employer team membership.

Both tables are owned by the company/job catalogue; the pipeline only reads
them to find an application's owning company and the actor's role in it.
"""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from talentflow.core.storage import Base
from talentflow.utils.time import utc_now


class JobStatus(StrEnum):
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    PUBLISHED = "published"
    CLOSED = "closed"
    INACTIVE = "inactive"


class JobPosting(Base):
    """Model for a job posting candidates apply to."""

    __tablename__ = "job_postings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JobStatus.PUBLISHED
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )

    def accepts_applications(self) -> bool:
        return self.status == JobStatus.PUBLISHED


class CompanyMember(Base):
    """Model for an employer-side user's role within a company."""

    __tablename__ = "company_members"
    __table_args__ = (
        UniqueConstraint("company_id", "actor_id", name="uq_company_members_actor"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )
