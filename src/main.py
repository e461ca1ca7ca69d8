import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.v1.api import api_router
from core.config import get_settings
from core.error_handler import (
    ExceptionNormalizationMiddleware,
    global_exception_handler,
    setup_logging,
)
from core.exceptions import LetterServiceError
from core.middleware import CorrelationIdMiddleware
from services.document_renderer import DocumentRenderer
from services.enrollment_aggregator import EnrollmentAggregator
from services.hubspot import HubSpotClient
from services.letter_service import LetterService
from services.render_session import (
    PlaywrightLauncher,
    RenderSessionManager,
    build_launch_config,
)


logger = logging.getLogger(__name__)

settings = get_settings()
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the shared clients on startup and release them on shutdown.

    Uvicorn turns SIGINT/SIGTERM into a lifespan shutdown, so the browser is
    closed on every orderly exit.
    """
    http_client = httpx.AsyncClient(
        base_url=settings.HUBSPOT_BASE_URL,
        timeout=settings.HUBSPOT_TIMEOUT_SECONDS,
    )
    hubspot = HubSpotClient(
        http_client,
        access_token=settings.HUBSPOT_ACCESS_TOKEN,
        contact_object_type=settings.CONTACT_OBJECT_TYPE,
        note_association_type_id=settings.NOTE_ASSOCIATION_TYPE_ID,
    )
    launch_config = build_launch_config(
        serverless=settings.is_serverless,
        executable_path=settings.CHROMIUM_EXECUTABLE_PATH,
    )
    sessions = RenderSessionManager(PlaywrightLauncher(), launch_config)
    renderer = DocumentRenderer(
        sessions,
        max_attempts=settings.RENDER_MAX_ATTEMPTS,
        backoff_seconds=settings.RENDER_BACKOFF_SECONDS,
        content_timeout_ms=settings.RENDER_CONTENT_TIMEOUT_MS,
    )
    aggregator = EnrollmentAggregator(
        hubspot,
        enrollment_object_type=settings.ENROLLMENT_OBJECT_TYPE,
        limit=settings.ENROLLMENT_LIMIT,
        association_limit=settings.ENROLLMENT_ASSOCIATION_LIMIT,
        timezone=settings.ENROLLMENT_TIMEZONE,
        strict=settings.ENROLLMENT_FETCH_STRICT,
    )
    app.state.render_sessions = sessions
    app.state.letter_service = LetterService(
        hubspot=hubspot,
        aggregator=aggregator,
        renderer=renderer,
        folder_id=settings.LETTER_FOLDER_ID,
        file_access=settings.LETTER_FILE_ACCESS,
    )
    logger.info(
        "Letter service started (environment=%s, launch=%s)",
        settings.ENVIRONMENT,
        launch_config.name,
    )
    try:
        yield
    finally:
        await sessions.teardown()
        await http_client.aclose()
        logger.info("Letter service shut down")


app = FastAPI(
    title=settings.APP_NAME,
    description="Generates enrollment and acceptance letters for CRM contacts",
    version="0.1.0",
    docs_url=None,  # We'll mount docs under /api/v1/docs
    redoc_url=None,
    lifespan=lifespan,
)

# Innermost first: the normalizer must see exceptions before the outer
# middleware, and CORS headers must wrap every response.
app.add_middleware(ExceptionNormalizationMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(LetterServiceError, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, global_exception_handler)
app.add_exception_handler(RequestValidationError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


# Mount OpenAPI docs under /api/v1/docs and /api/v1/redoc
@app.get("/api/v1/docs", include_in_schema=False)
def custom_swagger_ui_html():
    return get_swagger_ui_html(
        openapi_url="/openapi.json", title=f"{settings.APP_NAME} Docs"
    )


@app.get("/api/v1/redoc", include_in_schema=False)
def redoc_html():
    return get_redoc_html(openapi_url="/openapi.json", title=f"{settings.APP_NAME} Redoc")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
