"""Error handlers for the SkillHub tool registry."""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .base import (
    SkillHubError,
    ErrorSeverity,
    IntegrationError,
)

logger = logging.getLogger(__name__)

REDACTED = "***REDACTED***"

# Minimum length of a credential value before it is scrubbed from messages;
# shorter values (flags, modes) would mangle ordinary words.
_MIN_SECRET_LENGTH = 6


class ErrorHandler:
    """Logs platform errors by severity and keeps occurrence counts."""

    def __init__(self):
        self.error_counts: Dict[str, int] = {}

    def handle_error(self, error: SkillHubError, context: Optional[Dict[str, Any]] = None) -> None:
        """Log the error and update counters."""
        self._log_error(error, context or {})
        self._update_error_counts(error)

    def _log_error(self, error: SkillHubError, context: Dict[str, Any]):
        """Log the error with appropriate level."""
        log_data = {
            "error_code": error.error_code,
            "category": error.category.value,
            "severity": error.severity.value,
            "error_context": {**error.context, **context},
            "cause": repr(error.original_error) if error.original_error else None,
        }

        if error.severity == ErrorSeverity.CRITICAL:
            logger.critical("Critical error: %s", error.message, extra=log_data)
        elif error.severity == ErrorSeverity.HIGH:
            logger.error("High severity error: %s", error.message, extra=log_data)
        elif error.severity == ErrorSeverity.MEDIUM:
            logger.warning("Medium severity error: %s", error.message, extra=log_data)
        else:
            logger.info("Low severity error: %s", error.message, extra=log_data)

    def _update_error_counts(self, error: SkillHubError):
        key = f"{error.category.value}:{error.error_code}"
        self.error_counts[key] = self.error_counts.get(key, 0) + 1

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        return {
            "error_counts": self.error_counts.copy(),
            "total_errors": sum(self.error_counts.values()),
            "categories": sorted({key.split(":")[0] for key in self.error_counts})
        }


def _secret_values(credentials: Any) -> Iterable[str]:
    if isinstance(credentials, Mapping):
        for value in credentials.values():
            yield from _secret_values(value)
    elif isinstance(credentials, (list, tuple)):
        for value in credentials:
            yield from _secret_values(value)
    elif isinstance(credentials, str) and len(credentials) >= _MIN_SECRET_LENGTH:
        yield credentials


def redact_secrets(message: str, credentials: Optional[Mapping[str, Any]]) -> str:
    """Remove every credential string value from a message."""
    if not credentials:
        return message
    # Longest first so a token containing another token is removed whole
    for secret in sorted(set(_secret_values(credentials)), key=len, reverse=True):
        message = message.replace(secret, REDACTED)
    return message


def sanitize_data(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Replace values of sensitive-looking keys, recursively."""
    sensitive_keys = ("password", "token", "api_key", "apikey", "secret", "credentials", "authorization")
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        lower_key = str(key).lower()
        if any(pattern in lower_key for pattern in sensitive_keys):
            sanitized[key] = REDACTED
        elif isinstance(value, Mapping):
            sanitized[key] = sanitize_data(value)
        else:
            sanitized[key] = value
    return sanitized


def error_hint(message: str) -> str:
    """Suggest a remedy from the wording of an error message."""
    msg = message.lower()
    if "credentials" in msg or "decrypt" in msg:
        return "Credentials may be missing or invalid - verify integration configuration"
    if "disabled" in msg or "inactive" in msg:
        return "The tool or integration is disabled for this organisation"
    if "required" in msg:
        return "Required field missing - check the tool's parameter schema"
    if "not found" in msg or "unknown" in msg or "404" in msg:
        return "Resource not found - verify the ID/key exists"
    if "permission" in msg or "forbidden" in msg or "403" in msg:
        return "Permission denied - check API token permissions"
    if "unauthorized" in msg or "401" in msg or "authentication" in msg:
        return "Authentication failed - verify credentials"
    return "Check the error message for details"


def format_exception_details(error: SkillHubError) -> Dict[str, Any]:
    """Build the public message, upstream code and hint for an error."""
    if isinstance(error, IntegrationError) and error.upstream_status:
        status = error.upstream_status
        if status >= 500:
            return {
                "message": f"Server Error (HTTP {status}): The external service encountered an internal error",
                "code": status,
                "hint": "External service returned a server error (5xx) - try again later",
            }
        return {
            "message": f"API Error (HTTP {status}): {error.message}",
            "code": status,
            "hint": "Request error - check parameters and credentials",
        }

    return {
        "message": error.message,
        "code": error.status_code,
        "hint": error_hint(error.message),
    }


def error_payload(error: SkillHubError) -> Dict[str, Any]:
    """Execution response body for a typed failure."""
    details = format_exception_details(error)
    return {
        "success": False,
        "error": error.error_code,
        "message": details["message"],
        "error_code": error.error_code,
        "status_code": details["code"],
        "context": {k: v for k, v in error.context.items() if v is not None},
        "hint": details["hint"],
    }


def register_exception_handlers(app: FastAPI, handler: Optional[ErrorHandler] = None) -> ErrorHandler:
    """Render SkillHubError as JSON responses on the given app."""
    error_handler = handler or ErrorHandler()

    @app.exception_handler(SkillHubError)
    async def skillhub_error_handler(request: Request, exc: SkillHubError):
        error_handler.handle_error(exc, {"path": request.url.path})
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc))

    app.state.error_handler = error_handler
    return error_handler
