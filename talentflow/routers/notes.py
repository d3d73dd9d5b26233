"""API routes for notes and per-actor flags."""

from fastapi import APIRouter, Depends, HTTPException

from talentflow.core.exceptions import PipelineError, to_http_exception
from talentflow.models import FlagType
from talentflow.schemas.note import (
    BookmarkRequest,
    FlagResponse,
    FlagsResponse,
    NoteCreateRequest,
    NoteResponse,
    NoteUpdateRequest,
)
from talentflow.services.dependencies import get_actor_id, get_pipeline_service
from talentflow.services.pipeline_service import PipelineService

router = APIRouter(tags=["notes"])


@router.post(
    "/applications/{application_id}/notes",
    response_model=NoteResponse,
    status_code=201,
)
async def add_note(
    application_id: int,
    request: NoteCreateRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    try:
        return await service.add_note(
            application_id, actor_id, request.content, request.visibility.value
        )
    except PipelineError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/applications/{application_id}/notes", response_model=list[NoteResponse])
async def list_notes(
    application_id: int,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Shared notes plus the caller's own private notes."""
    try:
        return await service.list_notes(application_id, actor_id)
    except PipelineError as e:
        raise to_http_exception(e)


@router.put("/notes/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: int,
    request: NoteUpdateRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Edit a note; only its author may."""
    try:
        return await service.update_note(note_id, actor_id, request.content)
    except PipelineError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/applications/{application_id}/bookmark", response_model=FlagResponse)
async def set_bookmark(
    application_id: int,
    request: BookmarkRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    try:
        return await service.set_bookmark(application_id, actor_id, request.value)
    except PipelineError as e:
        raise to_http_exception(e)


@router.post("/applications/{application_id}/viewed", response_model=FlagResponse)
async def mark_viewed(
    application_id: int,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    try:
        return await service.mark_viewed(application_id, actor_id)
    except PipelineError as e:
        raise to_http_exception(e)


@router.get("/applications/{application_id}/flags", response_model=FlagsResponse)
async def get_flags(
    application_id: int,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    try:
        flags = await service.get_flags(application_id, actor_id)
    except PipelineError as e:
        raise to_http_exception(e)

    bookmark = flags.get(FlagType.BOOKMARK.value)
    viewed = flags.get(FlagType.VIEWED.value)
    return FlagsResponse(
        bookmarked=bool(bookmark and bookmark.value),
        viewed=bool(viewed and viewed.value),
        viewed_at=viewed.updated_at if viewed and viewed.value else None,
    )
