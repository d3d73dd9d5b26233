"""Application status state machine.

Forward moves advance exactly one stage along ``STAGE_ORDER``. Rejection is
reachable from every non-terminal status, withdrawal too but only by the
candidate. Hired, rejected and withdrawn are terminal.
"""

import logging

from talentflow.core.exceptions import (
    AlreadyTerminalError,
    ConcurrentModificationError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
)
from talentflow.models import (
    STAGE_ORDER,
    TERMINAL_STATUSES,
    ApplicationStatus,
    ApplicationStatusHistory,
    JobApplication,
)
from talentflow.services.stores import PipelineStores
from talentflow.utils.time import Clock, utc_now

logger = logging.getLogger(__name__)

_STAGE_INDEX = {status.value: index for index, status in enumerate(STAGE_ORDER)}


def next_stage(status: str) -> str | None:
    """Return the stage a forward move from ``status`` lands on."""
    index = _STAGE_INDEX.get(status)
    if index is None or index + 1 >= len(STAGE_ORDER):
        return None
    return STAGE_ORDER[index + 1].value


class ApplicationStateMachine:
    """Validates and applies application status changes."""

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    def check_transition(
        self, application: JobApplication, target: str, actor_id: str
    ) -> None:
        """Raise if ``application`` may not move to ``target`` on behalf of ``actor_id``.

        Role checks happen before this; the only actor rule here is that
        withdrawal belongs to the candidate.
        """
        current = application.status
        target = ApplicationStatus(target).value

        if current in TERMINAL_STATUSES:
            raise AlreadyTerminalError("application", application.id, current)

        if target == current:
            raise InvalidTransitionError(current, target, "already in this status")

        if target == ApplicationStatus.REJECTED.value:
            return

        if target == ApplicationStatus.WITHDRAWN.value:
            if not application.is_owned_by(actor_id):
                raise NotAuthorizedError(
                    actor_id, "Only the candidate can withdraw an application"
                )
            return

        if target != next_stage(current):
            raise InvalidTransitionError(
                current, target, "stages advance one step at a time"
            )

    async def transition(
        self,
        stores: PipelineStores,
        application_id: int,
        expected_version: int,
        target: str,
        actor_id: str,
        note: str | None = None,
    ) -> JobApplication:
        """Move an application to ``target`` inside the caller's transaction.

        Args:
            stores: Stores bound to the open transaction
            application_id: Application to move
            expected_version: Version the caller last read
            target: New status
            actor_id: Acting user, recorded in the history entry
            note: Optional history note

        Returns:
            The application with its new status and version

        Raises:
            NotFoundError: No such application
            ConcurrentModificationError: ``expected_version`` is stale
            AlreadyTerminalError: The application is already closed
            InvalidTransitionError: ``target`` is not reachable
            NotAuthorizedError: Withdrawal by someone other than the candidate
        """
        application = await stores.applications.get(application_id)
        if application is None:
            raise NotFoundError("application", application_id)

        if application.version != expected_version:
            raise ConcurrentModificationError(
                application_id, expected_version, application.version
            )

        self.check_transition(application, target, actor_id)

        previous = application.status
        now = self.clock()
        new_version = await stores.applications.compare_and_set_status(
            application_id, expected_version, ApplicationStatus(target).value, now
        )
        if new_version is None:
            raise ConcurrentModificationError(application_id, expected_version)

        await stores.applications.append_history(
            ApplicationStatusHistory(
                application_id=application_id,
                status=application.status,
                version=new_version,
                actor_id=actor_id,
                note=note,
                created_at=now,
            )
        )

        logger.info(
            f"Application {application_id} moved {previous} -> {application.status} "
            f"by {actor_id} (version {new_version})"
        )
        return application
