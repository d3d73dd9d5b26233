"""Validation logic for pipeline requests."""

from dataclasses import dataclass, field

from talentflow.core.config import settings


@dataclass
class ValidationResult:
    """Result of validation process."""

    is_valid: bool
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


def dedupe_ids(ids: list[int]) -> list[int]:
    """Drop repeated ids, keeping the first occurrence order."""
    return list(dict.fromkeys(ids))


def validate_bulk_transition_limits(
    application_ids: list[int],
    max_items: int | None = None,
) -> ValidationResult:
    """Validate the size of a bulk status change."""
    limit = max_items or settings.bulk_transition_max_items
    unique_ids = dedupe_ids(application_ids)

    if not unique_ids:
        return ValidationResult(
            is_valid=False,
            error="At least one application id is required",
        )

    if len(unique_ids) > limit:
        return ValidationResult(
            is_valid=False,
            error=f"Cannot change more than {limit} applications at once",
        )

    warnings = []
    if len(unique_ids) != len(application_ids):
        warnings.append(
            f"{len(application_ids) - len(unique_ids)} duplicate application ids ignored"
        )

    return ValidationResult(is_valid=True, warnings=warnings)


def validate_duration(duration_minutes: int) -> ValidationResult:
    """Validate an interview length against the configured bounds."""
    low = settings.interview_min_duration_minutes
    high = settings.interview_max_duration_minutes

    if duration_minutes < low:
        return ValidationResult(
            is_valid=False,
            error=f"Interview must last at least {low} minutes",
        )

    if duration_minutes > high:
        return ValidationResult(
            is_valid=False,
            error=f"Interview cannot last longer than {high} minutes",
        )

    return ValidationResult(is_valid=True)
