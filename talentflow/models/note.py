"""Application notes and per-actor flags."""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from talentflow.core.storage import Base
from talentflow.utils.time import utc_now


class NoteVisibility(StrEnum):
    PRIVATE = "private"
    SHARED = "shared"


class FlagType(StrEnum):
    BOOKMARK = "bookmark"
    VIEWED = "viewed"


class ApplicationNote(Base):
    """Model for a note an employer-side actor keeps on an application."""

    __tablename__ = "application_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("job_applications.id"), nullable=False, index=True
    )
    author_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    visibility: Mapped[str] = mapped_column(
        String(20), nullable=False, default=NoteVisibility.SHARED
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )

    def is_visible_to(self, actor_id: str) -> bool:
        return self.visibility == NoteVisibility.SHARED or self.author_id == actor_id


class ApplicationFlag(Base):
    """Advisory per-actor flag (bookmark, viewed) on an application."""

    __tablename__ = "application_flags"
    __table_args__ = (
        UniqueConstraint(
            "application_id", "actor_id", "flag_type", name="uq_application_flags_key"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("job_applications.id"), nullable=False, index=True
    )
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    flag_type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )
