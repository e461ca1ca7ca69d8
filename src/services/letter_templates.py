"""Jinja2 rendering of the enrollment and acceptance letter markup."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape


TEMPLATES_DIR = Path(__file__).parent / "templates"

ENROLLMENT_TEMPLATE = "enrollment_letter.html"
ACCEPTANCE_TEMPLATE = "acceptance_letter.html"

_ASSET_BASE = "https://46814382.fs1.hubspotusercontent-na1.net/hubfs/46814382"


@dataclass(frozen=True)
class Branding:
    logo_url: str = f"{_ASSET_BASE}/Enrollment%20Letter/prepdoctors_blue_logo.png"
    watermark_url: str = (
        f"{_ASSET_BASE}/011e001d-e85f-48c9-baf2-1dd37205781c_opengraph-16841b41.png"
    )
    signature_url: str = f"{_ASSET_BASE}/Enrollment%20Letter/Dipty%20Signature.jpg"
    signatory_name: str = "Dipty Missra"
    signatory_title: str = "Client Relations Manager"
    phone: str = "+1 855-397-7737"
    extension: str = "116"
    footer_phone: str = "+1-855-397-7737"
    email: str = "info@prepdoctors.ca"
    head_office: str = "200-1515 Matheson Blvd E, Mississauga, ON L4W 2P5"


@dataclass(frozen=True)
class CourseLine:
    course_name: str
    duration: str


DEFAULT_BRANDING = Branding()


class LetterTemplates:
    """Renders letter HTML from the packaged templates.

    All interpolated values are HTML-escaped; CRM fields such as names and
    locations are user-editable.
    """

    def __init__(
        self,
        templates_dir: Path = TEMPLATES_DIR,
        branding: Branding = DEFAULT_BRANDING,
    ) -> None:
        self.branding = branding
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
        )

    def render_enrollment(
        self,
        *,
        contact_name: str,
        location: str,
        facility_address: str | None,
        courses: Sequence[CourseLine],
        letter_date: str,
    ) -> str:
        return self.env.get_template(ENROLLMENT_TEMPLATE).render(
            letter_title="Letter of Enrollment",
            subject="Letter of Enrollment",
            font_size="13px",
            contact_name=contact_name,
            location=location,
            facility_address=facility_address,
            courses=list(courses),
            letter_date=letter_date,
            branding=self.branding,
        )

    def render_acceptance(
        self,
        *,
        contact_name: str,
        location: str,
        facility_address: str,
        course: CourseLine,
        letter_date: str,
    ) -> str:
        # A single course, so there is room for the larger type
        return self.env.get_template(ACCEPTANCE_TEMPLATE).render(
            letter_title="Letter of Acceptance",
            subject="Letter of Acceptance",
            font_size="15px",
            contact_name=contact_name,
            location=location,
            facility_address=facility_address,
            courses=[course],
            letter_date=letter_date,
            branding=self.branding,
        )
