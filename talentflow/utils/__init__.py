"""Utility functions and classes."""

from talentflow.utils.time import Clock, to_utc_naive, utc_now
from talentflow.utils.validators import (
    ValidationResult,
    dedupe_ids,
    validate_bulk_transition_limits,
    validate_duration,
)

__all__ = [
    "Clock",
    "ValidationResult",
    "dedupe_ids",
    "to_utc_naive",
    "utc_now",
    "validate_bulk_transition_limits",
    "validate_duration",
]
