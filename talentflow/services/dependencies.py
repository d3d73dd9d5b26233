"""FastAPI dependencies for the pipeline service."""

from fastapi import Header

from talentflow.core.exceptions import forbidden_exception
from talentflow.services.pipeline_service import PipelineService, create_pipeline_service

_service: PipelineService | None = None


def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str:
    """Actor identity set by the upstream authentication layer."""
    if not x_actor_id or not x_actor_id.strip():
        raise forbidden_exception("Missing X-Actor-Id header")
    return x_actor_id.strip()


def get_pipeline_service() -> PipelineService:
    """Get or create the process-wide pipeline service."""
    global _service
    if _service is None:
        _service = create_pipeline_service()
    return _service
