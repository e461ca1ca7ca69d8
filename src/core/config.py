"""Application settings and CORS configuration."""

import json
import os
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Environment markers set by the serverless platforms we deploy to
SERVERLESS_ENV_MARKERS: tuple[str, ...] = (
    "VERCEL",
    "AWS_LAMBDA_FUNCTION_NAME",
    "NETLIFY",
    "LAMBDA_TASK_ROOT",
    "GOOGLE_CLOUD_PROJECT",
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "Enrollment Letter Service"
    ENVIRONMENT: str = "development"  # development | production | test

    # HubSpot record store
    # The token is read once at startup; HS_TOKEN2 is the name used by the
    # original webhook deployment.
    HUBSPOT_ACCESS_TOKEN: str = Field(
        default="",
        validation_alias=AliasChoices("HUBSPOT_ACCESS_TOKEN", "HS_TOKEN2"),
    )
    HUBSPOT_BASE_URL: str = "https://api.hubapi.com"
    HUBSPOT_TIMEOUT_SECONDS: float = 30.0
    CONTACT_OBJECT_TYPE: str = "0-1"
    ENROLLMENT_OBJECT_TYPE: str = "2-41701559"

    # Enrollment aggregation
    ENROLLMENT_ASSOCIATION_LIMIT: int = Field(default=100, ge=1)
    ENROLLMENT_LIMIT: int = Field(default=8, ge=1)
    ENROLLMENT_TIMEZONE: str = "America/Toronto"
    ENROLLMENT_FETCH_STRICT: bool = True

    # Letter upload / audit note
    LETTER_FOLDER_ID: str = "194140833109"
    LETTER_FILE_ACCESS: str = "PUBLIC_NOT_INDEXABLE"
    NOTE_ASSOCIATION_TYPE_ID: int = 202

    # PDF rendering
    RENDER_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    RENDER_BACKOFF_SECONDS: float = Field(default=1.0, ge=0)
    RENDER_CONTENT_TIMEOUT_MS: int = Field(default=30_000, ge=1)
    # None means "detect from the platform environment markers"
    RENDER_SERVERLESS: bool | None = None
    CHROMIUM_EXECUTABLE_PATH: str | None = None

    # CORS
    # Accept list or CSV/JSON string from env; normalized to list[str] by validators.
    # Webhooks arrive from the CRM, so every origin is allowed by default.
    CORS_ORIGINS: list[str] | str = ["*"]
    ALLOW_CREDENTIALS: bool = False

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: object) -> list[str]:
        """Allow list, CSV string, or JSON array string for CORS origins."""
        if isinstance(v, list):
            return [str(i).strip() for i in v]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError as e:
                    raise ValueError(
                        "CORS_ORIGINS must be a CSV list or JSON array string"
                    ) from e
                if not isinstance(parsed, list):
                    raise ValueError("CORS_ORIGINS JSON must be a list")
                return [str(i).strip() for i in parsed]
            return [i.strip() for i in s.split(",") if i.strip()]
        raise ValueError("Invalid CORS_ORIGINS type; expected str or list[str]")

    @model_validator(mode="after")
    def _validate_cors_credentials(self) -> "Settings":
        """Ensure wildcard origins are not used when credentials are allowed."""
        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = self.assemble_cors_origins(self.CORS_ORIGINS)
        if self.ALLOW_CREDENTIALS and any(
            o.strip() == "*" for o in (self.CORS_ORIGINS or [])
        ):
            raise ValueError(
                "CORS configuration error: ALLOW_CREDENTIALS=True but "
                "CORS_ORIGINS contains '*'. Use explicit origins when credentials "
                "are allowed."
            )
        return self

    @property
    def is_serverless(self) -> bool:
        """Whether the renderer should use the serverless launch configuration."""
        if self.RENDER_SERVERLESS is not None:
            return self.RENDER_SERVERLESS
        return any(os.getenv(marker) for marker in SERVERLESS_ENV_MARKERS)


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in {"development", "production", "test"}:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""

    # The Settings initializer accepts a runtime-only `_env_file` kwarg used by
    # pydantic-settings; mypy's stub doesn't allow this call argument.
    settings = Settings(_env_file=env_file or None)  # type: ignore[call-arg]

    # Uploads and notes cannot work without a token, so fail at startup
    # rather than on the first webhook.
    if env == "production" and not settings.HUBSPOT_ACCESS_TOKEN:
        raise RuntimeError("HUBSPOT_ACCESS_TOKEN must be set in production")

    return settings
