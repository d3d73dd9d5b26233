"""API routes for interview scheduling."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from talentflow.core.exceptions import PipelineError, to_http_exception
from talentflow.schemas.interview import (
    CancelInterviewRequest,
    CompleteInterviewRequest,
    InterviewResponse,
    RescheduleInterviewRequest,
    ScheduleInterviewRequest,
    UpdateInterviewRequest,
)
from talentflow.services.dependencies import get_actor_id, get_pipeline_service
from talentflow.services.pipeline_service import PipelineService

router = APIRouter(tags=["interviews"])


@router.post(
    "/applications/{application_id}/interviews",
    response_model=InterviewResponse,
    status_code=201,
)
async def schedule_interview(
    application_id: int,
    request: ScheduleInterviewRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Book an interview; 409 names the clashing interview on double-booking."""
    try:
        return await service.schedule_interview(
            application_id,
            actor_id,
            interviewer_id=request.interviewer_id,
            scheduled_at=request.scheduled_at,
            duration_minutes=request.duration_minutes,
            interview_type=request.interview_type.value,
            location=request.location,
            meeting_link=request.meeting_link,
            participants=request.participants,
        )
    except PipelineError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get(
    "/applications/{application_id}/interviews",
    response_model=list[InterviewResponse],
)
async def list_interviews(
    application_id: int,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    try:
        return await service.list_interviews(application_id, actor_id)
    except PipelineError as e:
        raise to_http_exception(e)


@router.patch("/interviews/{interview_id}/reschedule", response_model=InterviewResponse)
async def reschedule_interview(
    interview_id: int,
    request: RescheduleInterviewRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    try:
        return await service.reschedule_interview(
            interview_id,
            actor_id,
            scheduled_at=request.scheduled_at,
            duration_minutes=request.duration_minutes,
            reason=request.reason,
        )
    except PipelineError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/interviews/{interview_id}", response_model=InterviewResponse)
async def update_interview(
    interview_id: int,
    request: UpdateInterviewRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Edit type, location, meeting link or participants; the slot stays put."""
    try:
        return await service.update_interview(
            interview_id,
            actor_id,
            interview_type=(
                request.interview_type.value if request.interview_type else None
            ),
            location=request.location,
            meeting_link=request.meeting_link,
            participants=request.participants,
        )
    except PipelineError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/interviews/{interview_id}/complete", response_model=InterviewResponse)
async def complete_interview(
    interview_id: int,
    request: CompleteInterviewRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Record feedback; the application keeps its status."""
    try:
        return await service.complete_interview(
            interview_id,
            actor_id,
            feedback=request.feedback,
            rating=request.rating,
            decision=request.decision.value if request.decision else None,
        )
    except PipelineError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/interviews/{interview_id}/cancel", response_model=InterviewResponse)
async def cancel_interview(
    interview_id: int,
    request: CancelInterviewRequest,
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    try:
        return await service.cancel_interview(interview_id, actor_id, request.reason)
    except PipelineError as e:
        raise to_http_exception(e)


@router.get(
    "/interviewers/{interviewer_id}/schedule",
    response_model=list[InterviewResponse],
)
async def get_interviewer_schedule(
    interviewer_id: str,
    start: datetime = Query(..., description="Range start"),
    end: datetime = Query(..., description="Range end, exclusive"),
    actor_id: str = Depends(get_actor_id),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Active interviews of one interviewer within a time range.

    Callers other than the interviewer only see interviews of companies they
    may view.
    """
    try:
        return await service.get_interviewer_schedule(
            interviewer_id, actor_id, start, end
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
