"""Error handling module for the SkillHub tool registry."""

from .base import (
    ErrorCategory,
    ErrorSeverity,
    SkillHubError,
    UnknownToolError,
    UnknownIntegrationTypeError,
    InstanceNotFoundError,
    InstanceInactiveError,
    ToolDisabledError,
    CredentialsMissingError,
    DecryptionFailedError,
    CredentialValidationError,
    InvalidParametersError,
    ToolExecutionError,
    IntegrationError,
    AuthenticationError,
    ConfigurationError,
    DuplicateIntegrationError,
    DatabaseError,
)

from .handlers import (
    ErrorHandler,
    error_payload,
    format_exception_details,
    redact_secrets,
    register_exception_handlers,
    sanitize_data,
)

__all__ = [
    # Base errors
    "ErrorCategory",
    "ErrorSeverity",
    "SkillHubError",
    "UnknownToolError",
    "UnknownIntegrationTypeError",
    "InstanceNotFoundError",
    "InstanceInactiveError",
    "ToolDisabledError",
    "CredentialsMissingError",
    "DecryptionFailedError",
    "CredentialValidationError",
    "InvalidParametersError",
    "ToolExecutionError",
    "IntegrationError",
    "AuthenticationError",
    "ConfigurationError",
    "DuplicateIntegrationError",
    "DatabaseError",

    # Error handlers
    "ErrorHandler",
    "error_payload",
    "format_exception_details",
    "redact_secrets",
    "register_exception_handlers",
    "sanitize_data",
]
