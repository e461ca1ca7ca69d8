"""Webhook endpoints that generate letters and attach them to a CRM contact."""

from fastapi import APIRouter, Response, status

from dependencies.services import LetterServiceDep
from schemas.letters import (
    AcceptanceLetterRequest,
    EnrollmentLetterRequest,
    LetterResponse,
    ServiceStatus,
)


router = APIRouter(prefix="/letters", tags=["letters"])

SERVICE_NAME = "PDF Generation Service"
SUCCESS_MESSAGE = "PDF generated, uploaded, and note created/associated in HubSpot."

_error_responses = {
    400: {"description": "Missing or invalid fields, or no usable enrollments"},
    500: {"description": "PDF rendering failed"},
    502: {"description": "CRM request failed"},
}


@router.post(
    "/enrollment",
    summary="Generate a Letter of Enrollment",
    response_model=LetterResponse,
    description=(
        "Aggregate the contact's most recent valid course enrollments, render "
        "them into a PDF letter, upload it and attach a note to the contact."
    ),
    responses=_error_responses,
)
async def create_enrollment_letter(
    payload: EnrollmentLetterRequest, service: LetterServiceDep
) -> LetterResponse:
    result = await service.create_enrollment_letter(payload.model_dump())
    return LetterResponse(
        message=SUCCESS_MESSAGE, note_id=result.note_id, file_url=result.file_url
    )


@router.post(
    "/acceptance",
    summary="Generate a Letter of Acceptance",
    response_model=LetterResponse,
    description=(
        "Render a Letter of Acceptance for one enrollment, upload it and "
        "attach a note to the contact."
    ),
    responses=_error_responses,
)
async def create_acceptance_letter(
    payload: AcceptanceLetterRequest, service: LetterServiceDep
) -> LetterResponse:
    result = await service.create_acceptance_letter(payload.model_dump())
    return LetterResponse(
        message=SUCCESS_MESSAGE, note_id=result.note_id, file_url=result.file_url
    )


@router.get("/enrollment", response_model=ServiceStatus)
@router.get("/acceptance", response_model=ServiceStatus)
def letter_service_status() -> ServiceStatus:
    """Liveness probe used by the workflow engine when configuring the webhook."""
    return ServiceStatus(status="PDF Generation API running", service=SERVICE_NAME)


@router.options("/enrollment")
@router.options("/acceptance")
def letter_options() -> Response:
    return Response(status_code=status.HTTP_200_OK)
