from fastapi import APIRouter, Request

from core.config import get_settings
from schemas.api import ApiResponse
from services.render_session import RenderSessionManager


router = APIRouter()


def _browser_state(request: Request) -> str:
    sessions: RenderSessionManager | None = getattr(
        request.app.state, "render_sessions", None
    )
    if sessions is None:
        return "not_started"
    browser = sessions.session
    if browser is not None and browser.is_connected():
        return "connected"
    # Launched lazily on the next render
    return "idle"


@router.get("/health", response_model=ApiResponse[dict[str, str]])
def health_check(request: Request) -> ApiResponse[dict[str, str]]:
    """Liveness check reporting the service name and the PDF browser state."""
    service = get_settings().APP_NAME
    return ApiResponse(
        success=True,
        data={
            "status": "healthy",
            "service": service,
            "message": f"{service} is running",
            "browser": _browser_state(request),
        },
        message="Health check successful",
    )
