"""Custom exceptions for the hiring pipeline."""

from fastapi import HTTPException, status


class PipelineError(Exception):
    """Base exception for hiring pipeline errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidTransitionError(PipelineError):
    """Raised when a status change is not an edge of the pipeline graph."""

    def __init__(self, current: str, target: str, reason: str | None = None):
        self.current = current
        self.target = target
        self.reason = reason
        detail = f"Cannot move application from {current} to {target}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)


class ConcurrentModificationError(PipelineError):
    """Raised when the stored version no longer matches the caller's version."""

    def __init__(
        self,
        application_id: int,
        expected_version: int,
        actual_version: int | None = None,
    ):
        self.application_id = application_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Application {application_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )


class InterviewConflictError(PipelineError):
    """Raised when an interview would double-book an interviewer or application."""

    def __init__(self, clashing_interview_id: int, reason: str):
        self.clashing_interview_id = clashing_interview_id
        self.reason = reason
        super().__init__(
            f"Interview conflict with interview {clashing_interview_id}: {reason}"
        )


class NotAuthorError(PipelineError):
    """Raised when someone other than the author edits a note."""

    def __init__(self, note_id: int, actor_id: str):
        self.note_id = note_id
        self.actor_id = actor_id
        super().__init__(f"Actor {actor_id} is not the author of note {note_id}")


class NotAuthorizedError(PipelineError):
    """Raised when the actor lacks the role or ownership an operation needs."""

    def __init__(self, actor_id: str, detail: str = "Not enough permissions"):
        self.actor_id = actor_id
        self.detail = detail
        super().__init__(f"Actor {actor_id} is not authorized: {detail}")


class NotFoundError(PipelineError):
    """Raised when an application, interview, note or job does not exist."""

    def __init__(self, resource: str, identifier: int | str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource.capitalize()} {identifier} not found")


class AlreadyTerminalError(PipelineError):
    """Raised when mutating an application or interview that is already closed."""

    def __init__(self, resource: str, identifier: int, status: str):
        self.resource = resource
        self.identifier = identifier
        self.status = status
        super().__init__(f"{resource.capitalize()} {identifier} is already {status}")


class DuplicateApplicationError(PipelineError):
    """Raised when a candidate applies to the same job twice."""

    def __init__(self, job_id: int, candidate_id: str):
        self.job_id = job_id
        self.candidate_id = candidate_id
        super().__init__(
            f"Candidate {candidate_id} already applied to job {job_id}"
        )


class JobClosedError(PipelineError):
    """Raised when a job posting is not accepting applications."""

    def __init__(self, job_id: int, job_status: str):
        self.job_id = job_id
        self.job_status = job_status
        super().__init__(
            f"Job {job_id} is not accepting applications (status {job_status})"
        )


def forbidden_exception(detail: str = "Not enough permissions") -> HTTPException:
    """Return a 403 Forbidden exception."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def not_found_exception(detail: str = "Resource not found") -> HTTPException:
    """Return a 404 Not Found exception."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def conflict_exception(detail: str = "Conflict") -> HTTPException:
    """Return a 409 Conflict exception."""
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail,
    )


def to_http_exception(error: PipelineError) -> HTTPException:
    """Map a pipeline error onto the HTTP status the routers answer with."""
    if isinstance(error, NotFoundError):
        return not_found_exception(error.message)
    if isinstance(error, NotAuthorizedError | NotAuthorError):
        return forbidden_exception(error.message)
    return conflict_exception(error.message)
