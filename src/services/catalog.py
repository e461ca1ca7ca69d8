"""Course and facility lookup tables plus letter date formatting.

Both tables are ordered ``(key, value)`` tuples rather than dicts. Course codes
are matched by case-insensitive substring, so the first entry whose key occurs
in the code wins; specific course types are listed before the campus code
``B9``, which is also used as a course prefix (``"B9-SitPractice-2024"`` is a
Situational Practice enrollment taken at the B9 campus).
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo


COURSE_CATALOG: tuple[tuple[str, str], ...] = (
    ("AFK", "Assessment of Fundamental Knowledge Course"),
    ("ACJ", "Assessment of Clinical Judgment Course"),
    ("ADT", "Advanced Dental Admission Test Course"),
    ("INBDE", "Integrated National Board Dental Examination Course"),
    ("BRD", "Virtual OSCE"),
    ("SitPractice", "NDECC® Situational Practice Course"),
    ("SimPack", "NDECC® Simulation Package Course"),
    ("Situational", "NDECC® Situational Judgment Course"),
    ("Sim", "NDECC® Simulation Situational Course"),
    ("Clinical", "NDECC® Clinical Skills Course"),
    ("B9", "NDECC® Clinical Skills Course"),
)

MISSISSAUGA_ADDRESS = "200-1515 Matheson Blvd Mississauga, ON L4W 2P5"

FACILITY_ADDRESSES: tuple[tuple[str, str], ...] = (
    ("Mississauga", MISSISSAUGA_ADDRESS),
    ("B9", MISSISSAUGA_ADDRESS),
    ("Online", MISSISSAUGA_ADDRESS),
    ("Vancouver", "522 Seventh Street, Unit 100, New Westminster, BC V3M 5T5"),
    ("Montreal", "6540 Chemin de la Côte-de-Liesse Saint-Laurent, QC H4T 1E3"),
    ("Calgary", "518 9 Ave SE, Calgary, AB T2G 0S1"),
)

# Course codes containing this marker run for a fixed twelve weeks
FIXED_DURATION_MARKER = "sitpractice"
FIXED_DURATION_LABEL = "12 Weeks"


class DateFormatError(ValueError):
    """Raised when a CRM date value cannot be interpreted."""


def map_course(course_id: str | None) -> str | None:
    """Return the display name for a raw course code, or None if unknown."""
    if not course_id:
        return None
    lower = str(course_id).lower()
    for key, name in COURSE_CATALOG:
        if key.lower() in lower:
            return name
    return None


def find_location(location: str | None) -> str | None:
    """Return the facility address for an exact location code match."""
    for key, address in FACILITY_ADDRESSES:
        if key == location:
            return address
    return None


def valid_locations() -> list[str]:
    return [key for key, _ in FACILITY_ADDRESSES]


def is_fixed_duration_course(course_id: str | None) -> bool:
    return FIXED_DURATION_MARKER in str(course_id or "").lower()


def _parse_date_value(value: object, tz: ZoneInfo) -> date:
    """Interpret an ISO date/datetime string or epoch milliseconds as a calendar date.

    Date-only strings (``"2022-10-01"``) are calendar dates and are not shifted.
    Datetimes carrying an offset and epoch milliseconds are converted to ``tz``.
    """
    if value is None or value == "":
        raise DateFormatError("Date value is empty or null")

    if isinstance(value, str) and "-" in value:
        text = value.strip()
        try:
            # Kept as-is on purpose: read as UTC midnight, these would print as
            # the previous day in any timezone west of UTC.
            if len(text) == 10:
                return date.fromisoformat(text)
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as e:
            raise DateFormatError(f"Invalid date format: {value}") from e
        if parsed.tzinfo is None:
            return parsed.date()
        return parsed.astimezone(tz).date()

    try:
        millis = float(value)  # type: ignore[arg-type]
        return datetime.fromtimestamp(millis / 1000, tz=UTC).astimezone(tz).date()
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise DateFormatError(f"Invalid date format: {value}") from e


def format_long_date(value: object, *, timezone: str = "UTC") -> str:
    """Format a CRM date value as ``"October 01, 2022"``.

    Raises:
        DateFormatError: If the value is empty or cannot be parsed.
    """
    day = _parse_date_value(value, ZoneInfo(timezone))
    return f"{day.strftime('%B')} {day.day:02d}, {day.year}"


def format_duration(start: object, end: object, *, timezone: str = "UTC") -> str:
    """Format a start/end pair as ``"<start> to <end>"``."""
    return (
        f"{format_long_date(start, timezone=timezone)} to "
        f"{format_long_date(end, timezone=timezone)}"
    )


def format_letter_date(today: date) -> str:
    """Format the letter date as ``"October 1, 2022"``."""
    return f"{today.strftime('%B')} {today.day}, {today.year}"


def parse_created_at(value: object) -> datetime:
    """Parse a CRM ``createdate``; missing or malformed values sort as oldest."""
    epoch = datetime(1970, 1, 1, tzinfo=UTC)
    if not value:
        return epoch
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return epoch
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
