"""Letter orchestration: validate, build markup, render, upload, annotate.

``LetterService`` is the single entry point used by the HTTP routes. It owns no
I/O resources itself; the HubSpot client, aggregator and renderer are shared
instances created by the application lifespan.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from core.error_handler import StructuredLogger
from core.exceptions import (
    IntegrationError,
    InvalidFieldError,
    MissingFieldsError,
    RenderError,
    UnknownCourseError,
    UnknownLocationError,
)
from schemas.api import utc_timestamp
from services.catalog import (
    FIXED_DURATION_LABEL,
    DateFormatError,
    find_location,
    format_long_date,
    format_letter_date,
    is_fixed_duration_course,
    map_course,
    valid_locations,
)
from services.document_renderer import DocumentRenderer
from services.enrollment_aggregator import EnrollmentAggregator
from services.hubspot import HubSpotClient, HubSpotError, UploadedFile
from services.letter_templates import CourseLine, LetterTemplates


logger = StructuredLogger(__name__)

ENROLLMENT_REQUIRED_FIELDS: tuple[str, ...] = (
    "firstname",
    "lastname",
    "recordID",
    "student_id",
)

ACCEPTANCE_REQUIRED_FIELDS: tuple[str, ...] = (
    *ENROLLMENT_REQUIRED_FIELDS,
    "location",
    "course_id",
    "enrollment_record_id",
)

ACCEPTANCE_DATE_FIELDS: tuple[str, ...] = ("course_start_date", "course_end_date")

ENROLLMENT_TITLE = "Letter of Enrollment"
ACCEPTANCE_TITLE = "Letter of Acceptance"


@dataclass(frozen=True)
class LetterResult:
    note_id: str
    file_id: str
    file_url: str


def find_missing_fields(payload: Mapping[str, Any], required: Sequence[str]) -> list[str]:
    """Required fields that are absent or falsy, in ``required`` order."""
    return [name for name in required if not payload.get(name)]


def acceptance_required_fields(payload: Mapping[str, Any]) -> tuple[str, ...]:
    if is_fixed_duration_course(payload.get("course_id")):
        return ACCEPTANCE_REQUIRED_FIELDS
    return ACCEPTANCE_REQUIRED_FIELDS + ACCEPTANCE_DATE_FIELDS


def note_body(title: str, file_url: str) -> str:
    return f'{title} attached: <a href="{file_url}" target="_blank">View PDF</a>'


class LetterService:
    def __init__(
        self,
        *,
        hubspot: HubSpotClient,
        aggregator: EnrollmentAggregator,
        renderer: DocumentRenderer,
        templates: LetterTemplates | None = None,
        folder_id: str,
        file_access: str = "PUBLIC_NOT_INDEXABLE",
        today: Callable[[], date] = date.today,
    ) -> None:
        self._hubspot = hubspot
        self._aggregator = aggregator
        self._renderer = renderer
        self._templates = templates or LetterTemplates()
        self.folder_id = folder_id
        self.file_access = file_access
        self._today = today

    async def create_enrollment_letter(self, payload: Mapping[str, Any]) -> LetterResult:
        """Letter listing the contact's most recent valid enrollments.

        Raises:
            MissingFieldsError: Before any external call, if required fields are absent.
            AggregationError, ChildFetchError: From the enrollment aggregation.
            RenderError, IntegrationError: From rendering or the upload/note step.
        """
        self._require(payload, ENROLLMENT_REQUIRED_FIELDS)
        record_id = str(payload["recordID"])

        logger.info("Generating enrollment letter", record_id=record_id)
        result = await self._aggregator.aggregate(record_id)
        if result.skipped:
            logger.warning(
                "Some enrollments were left out of the letter",
                record_id=record_id,
                skipped=[
                    {"record_id": s.record_id, "reason": str(s.reason)}
                    for s in result.skipped
                ],
            )

        location = payload.get("location")
        # The facility is supplementary; the letter is still issued without it
        facility_address = result.records[0].location or find_location(location)
        if facility_address is None:
            logger.warning(
                "No facility address resolved for enrollment letter",
                record_id=record_id,
                location=location,
            )

        markup = self._templates.render_enrollment(
            contact_name=_contact_name(payload),
            location=location or "",
            facility_address=facility_address,
            courses=[CourseLine(r.course_name, r.duration) for r in result.records],
            letter_date=format_letter_date(self._today()),
        )
        return await self._publish(
            markup,
            title=ENROLLMENT_TITLE,
            file_name=f"Letter_of_Enrollment_{payload['student_id']}.pdf",
            record_id=record_id,
        )

    async def create_acceptance_letter(self, payload: Mapping[str, Any]) -> LetterResult:
        """Letter of acceptance for the single enrollment named in the payload."""
        self._require(payload, acceptance_required_fields(payload))
        record_id = str(payload["recordID"])
        course_id = payload["course_id"]
        location = payload["location"]

        course_name = map_course(course_id)
        if course_name is None:
            raise UnknownCourseError(course_id)
        facility_address = find_location(location)
        if facility_address is None:
            raise UnknownLocationError(location, valid_locations())

        if is_fixed_duration_course(course_id):
            duration = FIXED_DURATION_LABEL
        else:
            duration = (
                f"{_utc_long_date(payload, 'course_start_date')} to "
                f"{_utc_long_date(payload, 'course_end_date')}"
            )

        logger.info(
            "Generating acceptance letter",
            record_id=record_id,
            enrollment_record_id=payload["enrollment_record_id"],
            course=course_name,
        )
        markup = self._templates.render_acceptance(
            contact_name=_contact_name(payload),
            location=str(location),
            facility_address=facility_address,
            course=CourseLine(course_name, duration),
            letter_date=format_letter_date(self._today()),
        )
        return await self._publish(
            markup,
            title=ACCEPTANCE_TITLE,
            file_name=(
                f"Letter_of_Acceptance_{payload['student_id']}"
                f"_{payload['enrollment_record_id']}.pdf"
            ),
            record_id=record_id,
        )

    def _require(self, payload: Mapping[str, Any], required: Sequence[str]) -> None:
        missing = find_missing_fields(payload, required)
        if missing:
            raise MissingFieldsError(missing)

    async def _publish(
        self, markup: str, *, title: str, file_name: str, record_id: str
    ) -> LetterResult:
        pdf = await self._renderer.render(markup)
        if not pdf:
            raise RenderError("PDF generation produced an empty document")

        try:
            uploaded: UploadedFile = await self._hubspot.upload_file(
                pdf, file_name, folder_id=self.folder_id, access=self.file_access
            )
        except HubSpotError as exc:
            raise IntegrationError("File upload", str(exc)) from exc

        try:
            note_id = await self._hubspot.create_note(
                note_body(title, uploaded.url),
                timestamp=uploaded.created_at or utc_timestamp(),
                attachment_id=uploaded.id,
                associated_record_id=record_id,
            )
        except HubSpotError as exc:
            raise IntegrationError("Note creation", str(exc)) from exc

        logger.info(
            "Letter uploaded and note created",
            record_id=record_id,
            file_id=uploaded.id,
            note_id=note_id,
            pdf_bytes=len(pdf),
        )
        return LetterResult(note_id=note_id, file_id=uploaded.id, file_url=uploaded.url)


def _contact_name(payload: Mapping[str, Any]) -> str:
    return f"{payload['firstname']} {payload['lastname']}"


def _utc_long_date(payload: Mapping[str, Any], field: str) -> str:
    value = payload.get(field)
    try:
        return format_long_date(value, timezone="UTC")
    except DateFormatError as exc:
        raise InvalidFieldError(field, value, str(exc)) from exc
