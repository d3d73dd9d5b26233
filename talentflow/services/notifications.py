"""Notification sink for pipeline events.

Events are emitted after the owning transaction commits. Delivery (push,
email) belongs to the external notification pipeline; emitting is
fire-and-forget and never fails the operation that produced the event.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from redis.exceptions import RedisError

from talentflow.core.redis_client import NotificationQueue
from talentflow.utils.time import utc_now

logger = logging.getLogger(__name__)


class PipelineEventType(StrEnum):
    APPLICATION_SUBMITTED = "application_submitted"
    APPLICATION_STATUS_CHANGED = "application_status_changed"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_RESCHEDULED = "interview_rescheduled"
    INTERVIEW_UPDATED = "interview_updated"
    INTERVIEW_COMPLETED = "interview_completed"
    INTERVIEW_CANCELLED = "interview_cancelled"


@dataclass(frozen=True)
class PipelineEvent:
    """A fact about the pipeline the notification pipeline may act on."""

    event: str
    application_id: int
    actor_id: str
    interview_id: int | None = None
    status: str | None = None
    occurred_at: datetime = field(default_factory=utc_now)
    data: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["occurred_at"] = self.occurred_at.isoformat()
        return payload


class NotificationSink(ABC):
    """Receives pipeline events."""

    @abstractmethod
    async def emit(self, event: PipelineEvent) -> None:
        """Hand an event over for delivery without waiting for it."""
        pass


class LoggingNotificationSink(NotificationSink):
    """Sink used when no queue is configured."""

    async def emit(self, event: PipelineEvent) -> None:
        logger.info(
            f"Notification {event.event} for application {event.application_id} "
            f"(actor {event.actor_id})"
        )


class RedisNotificationSink(NotificationSink):
    """Pushes events onto the Redis notification queue."""

    def __init__(self, queue: NotificationQueue | None = None):
        self.queue = queue or NotificationQueue()

    async def emit(self, event: PipelineEvent) -> None:
        try:
            await self.queue.push(event.to_payload())
        except (RedisError, OSError) as e:
            logger.error(
                f"Failed to queue notification {event.event} "
                f"for application {event.application_id}: {e}"
            )
