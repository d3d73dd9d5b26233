"""API routes for job applications and their status."""

from fastapi import APIRouter, Depends, HTTPException, Query

from talentflow.core.exceptions import PipelineError, to_http_exception
from talentflow.models import ApplicationStatus
from talentflow.schemas.application import (
    ApplicationResponse,
    BulkTransitionFailure,
    BulkTransitionRequest,
    BulkTransitionResponse,
    StatusHistoryEntry,
    SubmitApplicationRequest,
    TransitionRequest,
    WithdrawRequest,
)
from talentflow.services.dependencies import get_actor_id, get_pipeline_service
from talentflow.services.pipeline_service import PipelineService

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("", response_model=ApplicationResponse, status_code=201)
async def submit_application(
    request: SubmitApplicationRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Submit an application as the calling candidate."""
    try:
        return await service.submit_application(
            job_id=request.job_id,
            candidate_id=actor_id,
            cover_letter=request.cover_letter,
            resume_ref=request.resume_ref,
            source=request.source,
        )
    except PipelineError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/bulk-status", response_model=BulkTransitionResponse)
async def bulk_transition_status(
    request: BulkTransitionRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Move many applications to one status; reports per-item outcomes."""
    try:
        result = await service.bulk_transition_status(
            request.application_ids, request.status.value, actor_id, request.note
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return BulkTransitionResponse(
        succeeded=result.succeeded,
        failed=[
            BulkTransitionFailure(
                application_id=application_id,
                error=type(error).__name__,
                detail=error.message,
            )
            for application_id, error in result.failed.items()
        ],
    )


@router.get("/mine", response_model=list[ApplicationResponse])
async def list_my_applications(
    status: ApplicationStatus | None = Query(None, description="Only this status"),
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Applications submitted by the calling candidate."""
    return await service.list_my_applications(
        actor_id, status.value if status else None
    )


@router.get("/bookmarked", response_model=list[ApplicationResponse])
async def list_bookmarked_applications(
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    return await service.list_bookmarked_applications(actor_id)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    try:
        return await service.get_application(application_id, actor_id)
    except PipelineError as e:
        raise to_http_exception(e)


@router.get("/{application_id}/history", response_model=list[StatusHistoryEntry])
async def get_status_history(
    application_id: int,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    try:
        return await service.get_status_history(application_id, actor_id)
    except PipelineError as e:
        raise to_http_exception(e)


@router.patch("/{application_id}/status", response_model=ApplicationResponse)
async def transition_status(
    application_id: int,
    request: TransitionRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Move an application one stage, or reject it.

    A 409 carrying a version mismatch means the client must re-read and retry.
    """
    try:
        return await service.transition_status(
            application_id,
            request.expected_version,
            request.status.value,
            actor_id,
            request.note,
        )
    except PipelineError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw_application(
    application_id: int,
    request: WithdrawRequest | None = None,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Withdraw the calling candidate's application."""
    request = request or WithdrawRequest()
    try:
        return await service.withdraw_application(
            application_id, actor_id, request.expected_version, request.note
        )
    except PipelineError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
