"""Core application components."""

from talentflow.core.config import settings
from talentflow.core.exceptions import NotFoundError, PipelineError
from talentflow.core.storage import Base, async_session, init_models

__all__ = [
    "Base",
    "NotFoundError",
    "PipelineError",
    "async_session",
    "init_models",
    "settings",
]
