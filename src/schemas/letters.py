"""Schemas for the letter webhooks.

Payload fields are all optional at the schema level: required-field checks
happen in the service so the response can list every missing field at once.
Workflow engines send ids as either strings or numbers, and unknown extra
properties are tolerated.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from schemas.api import utc_timestamp


RecordId = str | int


class EnrollmentLetterRequest(BaseModel):
    """Webhook payload for a Letter of Enrollment."""

    firstname: Annotated[str | None, Field(description="Contact first name")] = None
    lastname: Annotated[str | None, Field(description="Contact last name")] = None
    recordID: Annotated[
        RecordId | None, Field(description="Contact record id in the CRM")
    ] = None
    student_id: Annotated[
        RecordId | None, Field(description="Student number used in the file name")
    ] = None
    location: Annotated[
        str | None, Field(description="Facility code, e.g. Mississauga")
    ] = None

    model_config = ConfigDict(extra="allow")


class AcceptanceLetterRequest(EnrollmentLetterRequest):
    """Webhook payload for a Letter of Acceptance for one enrollment."""

    course_id: Annotated[str | None, Field(description="Raw course code")] = None
    enrollment_record_id: Annotated[
        RecordId | None, Field(description="Enrollment record id in the CRM")
    ] = None
    course_start_date: Annotated[
        str | int | float | None,
        Field(description="Course start as epoch milliseconds"),
    ] = None
    course_end_date: Annotated[
        str | int | float | None,
        Field(description="Course end as epoch milliseconds"),
    ] = None


class LetterResponse(BaseModel):
    """Success body returned to the workflow engine."""

    message: str
    note_id: Annotated[str, Field(alias="noteId")]
    file_url: Annotated[str, Field(alias="fileUrl")]
    success: bool = True
    timestamp: str = Field(default_factory=utc_timestamp)

    model_config = ConfigDict(populate_by_name=True)


class ServiceStatus(BaseModel):
    """Body of ``GET`` on a letter endpoint."""

    status: str
    service: str
    timestamp: str = Field(default_factory=utc_timestamp)
