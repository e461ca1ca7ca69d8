"""Request-scoped access to the letter service built by the app lifespan."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from services.letter_service import LetterService


def get_letter_service(request: Request) -> LetterService:
    """FastAPI dependency returning the shared ``LetterService``."""
    service: LetterService | None = getattr(request.app.state, "letter_service", None)
    if service is None:
        raise RuntimeError("Letter service is not initialised")
    return service


LetterServiceDep = Annotated[LetterService, Depends(get_letter_service)]
