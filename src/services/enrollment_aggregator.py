"""Collect, validate and rank a contact's course enrollments for a letter.

Every associated enrollment is fetched concurrently. Each fetch resolves to one
tagged outcome:

* ``EnrollmentRecord``: usable in the letter;
* ``SkippedEnrollment``: data-quality problem (missing fields, bad dates,
  unknown course), dropped locally;
* ``ChildFetchError``: transport failure. In strict mode any such failure
  aborts the whole aggregation; otherwise it is downgraded to a skip.

Surviving records are ranked newest first and capped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from core.exceptions import AggregationError, ChildFetchError
from services.catalog import (
    DateFormatError,
    find_location,
    format_long_date,
    map_course,
    parse_created_at,
)
from services.hubspot import HubSpotClient, HubSpotError


logger = logging.getLogger(__name__)

ENROLLMENT_PROPERTIES: tuple[str, ...] = (
    "course_id",
    "course_name",
    "course_start_date",
    "course_end_date",
    "location",
    "createdate",
)


class SkipReason(StrEnum):
    MISSING_FIELDS = "missing_fields"
    BAD_DATE = "bad_date"
    UNKNOWN_COURSE = "unknown_course"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class EnrollmentRecord:
    course_name: str
    duration: str
    location: str | None
    created_at: datetime
    record_id: str


@dataclass(frozen=True)
class SkippedEnrollment:
    record_id: str
    reason: SkipReason
    detail: str = ""


@dataclass(frozen=True)
class AggregationResult:
    records: list[EnrollmentRecord]
    skipped: list[SkippedEnrollment] = field(default_factory=list)
    total_associations: int = 0


ChildOutcome = EnrollmentRecord | SkippedEnrollment | ChildFetchError


class EnrollmentAggregator:
    """Builds the ranked enrollment list for a contact's Letter of Enrollment."""

    def __init__(
        self,
        client: HubSpotClient,
        *,
        enrollment_object_type: str,
        limit: int = 8,
        association_limit: int = 100,
        timezone: str = "America/Toronto",
        strict: bool = True,
    ) -> None:
        self._client = client
        self.enrollment_object_type = enrollment_object_type
        self.limit = limit
        self.association_limit = association_limit
        self.timezone = timezone
        self.strict = strict

    async def aggregate(self, parent_id: str) -> AggregationResult:
        """Return up to ``limit`` valid enrollments for ``parent_id``, newest first.

        Raises:
            AggregationError: The association lookup failed or returned nothing,
                or no enrollment survived validation.
            ChildFetchError: In strict mode, when any enrollment fetch failed.
        """
        child_ids = await self._fetch_association_ids(parent_id)
        logger.info(
            "Found %d total enrollments for contact %s", len(child_ids), parent_id
        )

        outcomes: list[ChildOutcome] = await asyncio.gather(
            *(self._resolve_child(child_id) for child_id in child_ids)
        )

        records: list[EnrollmentRecord] = []
        skipped: list[SkippedEnrollment] = []
        failures: list[ChildFetchError] = []
        for outcome in outcomes:
            if isinstance(outcome, EnrollmentRecord):
                records.append(outcome)
            elif isinstance(outcome, SkippedEnrollment):
                skipped.append(outcome)
            else:
                failures.append(outcome)

        if failures:
            if self.strict:
                logger.error(
                    "%d of %d enrollment fetches failed for contact %s",
                    len(failures),
                    len(child_ids),
                    parent_id,
                )
                raise failures[0]
            skipped.extend(
                SkippedEnrollment(f.record_id, SkipReason.FETCH_FAILED, f.message)
                for f in failures
            )

        logger.info("Processing %d valid enrollments before limiting", len(records))
        ranked = rank_enrollments(records, self.limit)
        if not ranked:
            raise AggregationError(
                "No valid course enrollments found for this student", parent_id
            )

        logger.info(
            "Limited to %d most recent enrollments (newest %s, oldest %s): %s",
            len(ranked),
            ranked[0].created_at.isoformat(),
            ranked[-1].created_at.isoformat(),
            [r.record_id for r in ranked],
        )
        return AggregationResult(
            records=ranked, skipped=skipped, total_associations=len(child_ids)
        )

    async def _fetch_association_ids(self, parent_id: str) -> list[str]:
        try:
            child_ids = await self._client.get_associations(
                parent_id,
                self.enrollment_object_type,
                limit=self.association_limit,
            )
        except HubSpotError as exc:
            raise AggregationError(
                f"Failed fetching associations: {exc}", parent_id
            ) from exc
        if not child_ids:
            raise AggregationError("Trainee has no valid enrollments", parent_id)
        return child_ids

    async def _resolve_child(self, record_id: str) -> ChildOutcome:
        try:
            props = await self._client.get_record_properties(
                self.enrollment_object_type, record_id, ENROLLMENT_PROPERTIES
            )
        except HubSpotError as exc:
            return ChildFetchError(record_id, str(exc))
        return self._build_record(record_id, props)

    def _build_record(
        self, record_id: str, props: dict[str, Any]
    ) -> EnrollmentRecord | SkippedEnrollment:
        course_id = props.get("course_id")
        start = props.get("course_start_date")
        end = props.get("course_end_date")

        missing = [
            name
            for name, value in (
                ("course_start_date", start),
                ("course_end_date", end),
                ("course_id", course_id),
            )
            if not value
        ]
        if missing:
            logger.warning(
                "Skipping enrollment %s - missing required properties: %s",
                record_id,
                missing,
            )
            return SkippedEnrollment(
                record_id, SkipReason.MISSING_FIELDS, ", ".join(missing)
            )

        try:
            start_label = format_long_date(start, timezone=self.timezone)
            end_label = format_long_date(end, timezone=self.timezone)
        except DateFormatError as exc:
            logger.warning("Skipping enrollment %s - %s", record_id, exc)
            return SkippedEnrollment(record_id, SkipReason.BAD_DATE, str(exc))

        course_name = map_course(course_id)
        if course_name is None:
            logger.warning(
                "Skipping enrollment %s - unknown course type: %s", record_id, course_id
            )
            return SkippedEnrollment(record_id, SkipReason.UNKNOWN_COURSE, str(course_id))

        return EnrollmentRecord(
            course_name=course_name,
            duration=f"{start_label} to {end_label}",
            location=find_location(props.get("location")),
            created_at=parse_created_at(props.get("createdate")),
            record_id=record_id,
        )


def rank_enrollments(
    records: list[EnrollmentRecord], limit: int
) -> list[EnrollmentRecord]:
    """Newest first by creation time (record id breaks ties), capped at ``limit``."""
    ordered = sorted(records, key=lambda r: (r.created_at, r.record_id), reverse=True)
    return ordered[:limit]
