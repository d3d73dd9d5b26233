"""API routers."""

from talentflow.routers.applications import router as applications_router
from talentflow.routers.interviews import router as interviews_router
from talentflow.routers.jobs import router as jobs_router
from talentflow.routers.notes import router as notes_router

__all__ = ["applications_router", "interviews_router", "jobs_router", "notes_router"]
