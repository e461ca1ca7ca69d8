"""Domain exceptions for the letter pipeline.

Each exception carries a stable ``error_code`` (used as the ``error`` field of
the failure envelope and for log tagging) and the HTTP ``status_code`` the
global exception handler maps it to. Client-caused problems are 4xx; render
and record-store failures are 5xx.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class LetterServiceError(DomainError):
    """Base class for errors raised while producing a letter."""

    error_code = "letter_error"
    status_code = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details


class MissingFieldsError(LetterServiceError):
    """Raised when the inbound payload lacks one or more required fields."""

    error_code = "missing_fields"
    status_code = 400

    def __init__(self, missing_fields: list[str]) -> None:
        super().__init__(
            "Missing required fields: " + ", ".join(missing_fields),
            missingFields=list(missing_fields),
        )
        self.missing_fields = list(missing_fields)


class InvalidFieldError(LetterServiceError):
    """Raised when a payload field is present but cannot be interpreted."""

    error_code = "invalid_field"
    status_code = 400

    def __init__(self, field: str, value: Any, reason: str) -> None:
        super().__init__(f"Invalid value for '{field}': {reason}", field=field)
        self.field = field
        self.value = value


class UnknownLocationError(LetterServiceError):
    error_code = "invalid_location"
    status_code = 400

    def __init__(self, location: Any, valid_locations: list[str]) -> None:
        super().__init__(
            f"Unknown location: {location}",
            location=location,
            validLocations=valid_locations,
        )


class UnknownCourseError(LetterServiceError):
    error_code = "unknown_course"
    status_code = 400

    def __init__(self, course_id: Any) -> None:
        super().__init__(f"Unknown course code: {course_id}", course_id=course_id)


class AggregationError(LetterServiceError):
    """No usable enrollment data could be gathered for a contact."""

    error_code = "no_valid_enrollments"
    status_code = 400

    def __init__(self, message: str, parent_id: str) -> None:
        super().__init__(message, recordID=parent_id)
        self.parent_id = parent_id


class ChildFetchError(LetterServiceError):
    """A single enrollment detail fetch failed at the transport level."""

    error_code = "enrollment_fetch_failed"
    status_code = 502

    def __init__(self, record_id: str, cause: str) -> None:
        super().__init__(
            f"Failed fetching enrollment {record_id}: {cause}", record_id=record_id
        )
        self.record_id = record_id


class RenderError(LetterServiceError):
    """PDF rendering failed after exhausting the retry budget."""

    error_code = "render_failed"
    status_code = 500

    def __init__(self, message: str, attempts: list[Any] | None = None) -> None:
        super().__init__(message)
        self.attempts = list(attempts or [])


class IntegrationError(LetterServiceError):
    """Upload or note creation against the record store failed."""

    error_code = "integration_failed"
    status_code = 502

    def __init__(self, operation: str, cause: str) -> None:
        super().__init__(f"{operation} failed: {cause}", operation=operation)
        self.operation = operation
