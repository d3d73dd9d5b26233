"""Hiring pipeline services."""

from talentflow.services.pipeline_service import (
    BulkTransitionResult,
    PipelineService,
    create_pipeline_service,
)

__all__ = ["BulkTransitionResult", "PipelineService", "create_pipeline_service"]
