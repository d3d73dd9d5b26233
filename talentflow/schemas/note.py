"""Schemas for notes and flags."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from talentflow.models import FlagType, NoteVisibility


class NoteCreateRequest(BaseModel):
    content: str = Field(..., min_length=1)
    visibility: NoteVisibility = NoteVisibility.SHARED


class NoteUpdateRequest(BaseModel):
    content: str = Field(..., min_length=1)


class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    author_id: str
    content: str
    visibility: NoteVisibility
    created_at: datetime
    updated_at: datetime


class BookmarkRequest(BaseModel):
    value: bool = Field(..., description="Bookmark on or off")


class FlagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    application_id: int
    actor_id: str
    flag_type: FlagType
    value: bool
    updated_at: datetime


class FlagsResponse(BaseModel):
    """Flags the calling actor holds on one application."""

    bookmarked: bool = False
    viewed: bool = False
    viewed_at: datetime | None = None
