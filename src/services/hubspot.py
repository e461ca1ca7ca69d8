"""HubSpot CRM client: associations, record reads, file upload and notes."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx


logger = logging.getLogger(__name__)

NOTE_ASSOCIATION_CATEGORY = "HUBSPOT_DEFINED"


class HubSpotError(Exception):
    """A HubSpot request failed or returned an unexpected payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        prefix = f"{self.status_code} " if self.status_code is not None else ""
        return f"{prefix}{self.args[0]}"


@dataclass(frozen=True)
class UploadedFile:
    id: str
    url: str
    created_at: str | None


class HubSpotClient:
    """Thin async wrapper around the HubSpot REST endpoints the letters need.

    The bearer token is supplied once at construction. The underlying
    ``httpx.AsyncClient`` is owned by the caller (the app lifespan), which is
    responsible for closing it.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        access_token: str,
        contact_object_type: str = "0-1",
        note_association_type_id: int = 202,
    ) -> None:
        self._http = http_client
        self._auth_headers = {"Authorization": f"Bearer {access_token}"}
        self.contact_object_type = contact_object_type
        self.note_association_type_id = note_association_type_id

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        headers = {**self._auth_headers, **kwargs.pop("headers", {})}
        try:
            response = await self._http.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise HubSpotError(
                f"{method} {exc.request.url.path} failed",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise HubSpotError(f"{method} {url} failed: {type(exc).__name__}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise HubSpotError(f"{method} {url} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise HubSpotError(f"{method} {url} returned an unexpected payload")
        return data

    async def get_associations(
        self, parent_id: str, to_object_type: str, *, limit: int = 100
    ) -> list[str]:
        """Return the ids of ``to_object_type`` records associated with a contact."""
        data = await self._request(
            "GET",
            f"/crm/v4/objects/{self.contact_object_type}/{parent_id}"
            f"/associations/{to_object_type}",
            params={"limit": limit},
        )
        results = data.get("results")
        if not isinstance(results, list):
            raise HubSpotError("HubSpot API did not return expected association data")
        try:
            return [str(item["toObjectId"]) for item in results]
        except (KeyError, TypeError) as exc:
            raise HubSpotError("Association result is missing toObjectId") from exc

    async def get_record_properties(
        self, object_type: str, record_id: str, properties: Sequence[str]
    ) -> dict[str, Any]:
        """Read selected properties of a single CRM record."""
        data = await self._request(
            "GET",
            f"/crm/v3/objects/{object_type}/{record_id}",
            params={"properties": ",".join(properties)},
        )
        props = data.get("properties")
        if not isinstance(props, dict):
            raise HubSpotError(f"Record {record_id} response has no properties")
        return props

    async def upload_file(
        self,
        content: bytes,
        file_name: str,
        *,
        folder_id: str,
        access: str = "PUBLIC_NOT_INDEXABLE",
    ) -> UploadedFile:
        """Upload a PDF into the file manager and return its id and URL."""
        data = await self._request(
            "POST",
            "/files/v3/files",
            files={"file": (file_name, content, "application/pdf")},
            data={
                "options": json.dumps({"access": access}),
                "folderId": folder_id,
            },
        )
        file_id = data.get("id")
        url = data.get("url") or data.get("absoluteUrl")
        if not file_id or not url:
            raise HubSpotError("File upload response is missing id or url")
        logger.info("Uploaded %s (%d bytes) as file %s", file_name, len(content), file_id)
        return UploadedFile(id=str(file_id), url=url, created_at=data.get("createdAt"))

    async def create_note(
        self,
        body: str,
        *,
        timestamp: str | None,
        attachment_id: str,
        associated_record_id: str,
    ) -> str:
        """Create a note with an attachment on a contact record; returns the note id."""
        payload = {
            "properties": {
                "hs_note_body": body,
                "hs_timestamp": timestamp,
                "hs_attachment_ids": attachment_id,
            },
            "associations": [
                {
                    "to": {"id": associated_record_id},
                    "types": [
                        {
                            "associationCategory": NOTE_ASSOCIATION_CATEGORY,
                            "associationTypeId": self.note_association_type_id,
                        }
                    ],
                }
            ],
        }
        data = await self._request("POST", "/crm/v3/objects/notes", json=payload)
        note_id = data.get("id")
        if not note_id:
            raise HubSpotError("Note creation response is missing id")
        return str(note_id)
