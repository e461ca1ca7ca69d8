"""Security configuration constants for the letter service.

This module centralizes security-related configuration including:
- Sensitive keys that should be sanitized from logs
- Error response fields allowed per environment
"""

# Keys redacted from structured logs. Matching is case-insensitive substring
# matching, so "authorization" also covers "x-authorization".
SENSITIVE_KEYS: set[str] = {
    # Credentials
    "password",
    "secret",
    "token",
    "authorization",
    "api_key",
    "bearer",
    "cookie",
    "session_id",
    # Student personal data carried by webhook payloads
    "firstname",
    "lastname",
    "first_name",
    "last_name",
    "email",
    "phone",
}

# In production, error responses only carry these fields
PRODUCTION_ERROR_FIELDS: set[str] = {
    "correlation_id",
    "type",
    "details",
}

# Development adds diagnostics
DEVELOPMENT_ERROR_FIELDS: set[str] = PRODUCTION_ERROR_FIELDS | {
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Get allowed error response fields based on environment."""
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS.copy()
    return DEVELOPMENT_ERROR_FIELDS.copy()


def is_sensitive_key(key: str) -> bool:
    """Check if a key should be considered sensitive and redacted."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
