"""Base error classes for the SkillHub tool registry."""

from typing import Dict, Any, Optional
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    LOOKUP = "lookup"
    AUTHORIZATION = "authorization"
    CREDENTIALS = "credentials"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    INTEGRATION = "integration"
    EXECUTION = "execution"
    DATABASE = "database"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class SkillHubError(Exception):
    """Base exception for all SkillHub errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.severity = severity
        self.context = context or {}
        self.user_message = user_message or self._generate_user_message()
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)

    def _generate_user_message(self) -> str:
        """Generate a user-friendly error message."""
        if self.category == ErrorCategory.LOOKUP:
            return "The requested integration or tool does not exist."
        elif self.category == ErrorCategory.AUTHORIZATION:
            return "This tool is not available for your organisation."
        elif self.category == ErrorCategory.CREDENTIALS:
            return "The integration credentials are missing or unreadable. Please re-configure the integration."
        elif self.category == ErrorCategory.VALIDATION:
            return "Please check your input and try again."
        elif self.category == ErrorCategory.AUTHENTICATION:
            return "Authentication with the external service failed. Please reconnect the integration."
        elif self.category in (ErrorCategory.INTEGRATION, ErrorCategory.EXECUTION):
            return "There was an issue executing the tool against an external service. Please try again later."
        elif self.category == ErrorCategory.DATABASE:
            return "There was a temporary database issue. Please try again in a moment."
        else:
            return "An unexpected error occurred. Please try again or contact support if the issue persists."

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": type(self.original_error).__name__ if self.original_error else None
        }


class UnknownToolError(SkillHubError):
    """The integration does not declare the requested tool."""

    status_code = 404

    def __init__(self, tool_name: str, integration_type: Optional[str] = None, **kwargs):
        super().__init__(
            message=f"Unknown tool: {tool_name}",
            error_code="UNKNOWN_TOOL",
            category=ErrorCategory.LOOKUP,
            severity=ErrorSeverity.LOW,
            context={"tool_name": tool_name, "integration_type": integration_type},
            **kwargs
        )
        self.tool_name = tool_name
        self.integration_type = integration_type


class UnknownIntegrationTypeError(SkillHubError):
    """An instance references an integration type that is not registered."""

    status_code = 404

    def __init__(self, integration_type: str, **kwargs):
        super().__init__(
            message=f"Unknown integration type: {integration_type}",
            error_code="UNKNOWN_INTEGRATION_TYPE",
            category=ErrorCategory.LOOKUP,
            severity=ErrorSeverity.MEDIUM,
            context={"integration_type": integration_type},
            **kwargs
        )
        self.integration_type = integration_type


class InstanceNotFoundError(SkillHubError):
    """Raised for missing instances and for instances of another organisation alike."""

    status_code = 404

    def __init__(self, instance_id: Any, **kwargs):
        super().__init__(
            message=f"Integration instance {instance_id} not found",
            error_code="NOT_FOUND",
            category=ErrorCategory.LOOKUP,
            severity=ErrorSeverity.LOW,
            context={"instance_id": instance_id},
            **kwargs
        )
        self.instance_id = instance_id


class InstanceInactiveError(SkillHubError):
    """The integration instance has been deactivated."""

    status_code = 403

    def __init__(self, instance_id: Any, **kwargs):
        super().__init__(
            message=f"Integration instance {instance_id} is inactive",
            error_code="INACTIVE",
            category=ErrorCategory.AUTHORIZATION,
            severity=ErrorSeverity.LOW,
            context={"instance_id": instance_id},
            **kwargs
        )
        self.instance_id = instance_id


class ToolDisabledError(SkillHubError):
    """The tool has been disabled for this instance."""

    status_code = 403

    def __init__(self, tool_name: str, instance_id: Any = None, **kwargs):
        super().__init__(
            message=f"Tool {tool_name} is disabled",
            error_code="TOOL_DISABLED",
            category=ErrorCategory.AUTHORIZATION,
            severity=ErrorSeverity.LOW,
            context={"tool_name": tool_name, "instance_id": instance_id},
            **kwargs
        )
        self.tool_name = tool_name
        self.instance_id = instance_id


class CredentialsMissingError(SkillHubError):
    """A credential-requiring instance has no stored credentials."""

    status_code = 400

    def __init__(self, instance_id: Any, integration_type: Optional[str] = None, **kwargs):
        super().__init__(
            message=f"Credentials not configured for integration instance {instance_id}",
            error_code="CREDENTIALS_MISSING",
            category=ErrorCategory.CREDENTIALS,
            severity=ErrorSeverity.LOW,
            context={"instance_id": instance_id, "integration_type": integration_type},
            **kwargs
        )
        self.instance_id = instance_id


class DecryptionFailedError(SkillHubError):
    """Stored credentials could not be decrypted.

    The message is fixed so that neither ciphertext nor key material can end up
    in an API response.
    """

    status_code = 500

    def __init__(self, reason: str = "Failed to decrypt credentials", **kwargs):
        super().__init__(
            message=reason,
            error_code="DECRYPTION_FAILED",
            category=ErrorCategory.CREDENTIALS,
            severity=ErrorSeverity.HIGH,
            **kwargs
        )


class CredentialValidationError(SkillHubError):
    """Credentials failed the structural check of their integration."""

    status_code = 422

    def __init__(self, integration_type: str, fields: Optional[list] = None, **kwargs):
        super().__init__(
            message=f"Invalid credentials for integration {integration_type}",
            error_code="VALIDATION_FAILED",
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            context={"integration_type": integration_type, "fields": fields or []},
            **kwargs
        )
        self.integration_type = integration_type
        self.fields = fields or []


class InvalidParametersError(SkillHubError):
    """Required tool parameters are missing."""

    status_code = 422

    def __init__(self, tool_name: str, missing: Optional[list] = None, **kwargs):
        missing = missing or []
        super().__init__(
            message=f"Missing required parameter(s) for {tool_name}: {', '.join(missing)}",
            error_code="INVALID_PARAMETERS",
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            context={"tool_name": tool_name, "missing": missing},
            **kwargs
        )
        self.tool_name = tool_name
        self.missing = missing


class ToolExecutionError(SkillHubError):
    """An adapter failed while executing a tool."""

    status_code = 502

    def __init__(
        self,
        message: str,
        tool_name: str,
        integration_type: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message=message,
            error_code="EXECUTION_FAILED",
            category=ErrorCategory.EXECUTION,
            severity=ErrorSeverity.MEDIUM,
            context={"tool_name": tool_name, "integration_type": integration_type},
            **kwargs
        )
        self.tool_name = tool_name
        self.integration_type = integration_type


class IntegrationError(SkillHubError):
    """Error for external service integration failures."""

    status_code = 502

    def __init__(
        self,
        message: str,
        service: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        super().__init__(
            message=message,
            error_code="INTEGRATION_ERROR",
            category=ErrorCategory.INTEGRATION,
            severity=ErrorSeverity.MEDIUM,
            context={
                "service": service,
                "operation": operation,
                "status_code": status_code
            },
            **kwargs
        )
        self.service = service
        self.operation = operation
        self.upstream_status = status_code


class AuthenticationError(SkillHubError):
    """Error for authentication failures against an external service."""

    status_code = 401

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message=message,
            error_code="AUTHENTICATION_ERROR",
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.HIGH,
            context={"service": service},
            **kwargs
        )
        self.service = service


class ConfigurationError(SkillHubError):
    """Error for invalid application or integration configuration."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", "CONFIGURATION_ERROR")
        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class DuplicateIntegrationError(ConfigurationError):
    """Two integrations declare the same type."""

    def __init__(self, integration_type: str):
        super().__init__(
            f"Integration type '{integration_type}' is registered more than once",
            context={"integration_type": integration_type}
        )
        self.integration_type = integration_type


class DatabaseError(SkillHubError):
    """Error for database operation failures."""

    status_code = 503

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            category=ErrorCategory.DATABASE,
            severity=ErrorSeverity.HIGH,
            context={"operation": operation, "table": table},
            **kwargs
        )
        self.operation = operation
        self.table = table
