"""API routes for the employer view of a job's applicants."""

from fastapi import APIRouter, Depends, Query

from talentflow.core.exceptions import PipelineError, to_http_exception
from talentflow.models import ApplicationStatus
from talentflow.schemas.application import ApplicationResponse
from talentflow.services.dependencies import get_actor_id, get_pipeline_service
from talentflow.services.pipeline_service import PipelineService

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{job_id}/applications", response_model=list[ApplicationResponse])
async def list_job_applications(
    job_id: int,
    status: ApplicationStatus | None = Query(None, description="Only this status"),
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Applications to one job, newest first."""
    try:
        return await service.list_job_applications(
            job_id, actor_id, status.value if status else None
        )
    except PipelineError as e:
        raise to_http_exception(e)
