"""Domain-specific exceptions for service layer operations.

This module provides a structured exception hierarchy shared by the backend
(task CRUD, authentication) and the device runtime (local job store, remote
job sources, reconciliation), enabling proper error handling, logging, and
client response generation.

Architecture:
- ServiceError: Base exception with correlation ID and context support
- Category Base Classes: AuthError, BusinessError, RemoteSourceError, ...
- Specific Exceptions: Concrete exceptions for specific scenarios
- Error Context: Rich metadata and user-friendly message support
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from http import HTTPStatus


class ErrorSeverity(Enum):
    """Error severity levels for logging and monitoring."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification and handling."""
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    EXTERNAL_SERVICE = "external_service"
    INFRASTRUCTURE = "infrastructure"
    SYSTEM = "system"


class ServiceError(Exception):
    """Base exception for all service layer errors.

    Provides structured error information with correlation ID support,
    HTTP status mapping, and rich context for debugging and client responses.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for client handling
        correlation_id: Request correlation ID for tracing
        details: Additional error context (sanitized for logging)
        user_message: User-friendly message for client display
        severity: Error severity level for logging/monitoring
        category: Error category for classification
        http_status: HTTP status code for API responses
    """

    def __init__(
        self,
        message: str,
        error_code: str = "SERVICE_ERROR",
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        http_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.correlation_id = correlation_id
        self.details = details or {}
        self.user_message = user_message or message
        self.severity = severity
        self.category = category
        self.http_status = http_status

    def to_dict(self, include_sensitive: bool = False) -> Dict[str, Any]:
        """Convert exception to the `{code, message, details}` error body.

        Args:
            include_sensitive: Whether to include internal details

        Returns:
            Dictionary representation of the error
        """
        result: Dict[str, Any] = {
            "code": self.error_code,
            "message": self.user_message,
        }
        if include_sensitive and self.details:
            result["details"] = self.details
        else:
            result["details"] = None
        return result

    def __str__(self) -> str:
        """String representation for logging."""
        return f"{self.error_code}: {self.message}"


# =============================================================================
# AUTHENTICATION & AUTHORIZATION ERRORS
# =============================================================================

class AuthError(ServiceError):
    """Base class for authentication errors (bad credentials, expired token)."""

    def __init__(
        self,
        message: str = "Authentication failed",
        error_code: str = "UNAUTHORIZED",
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        http_status: HTTPStatus = HTTPStatus.UNAUTHORIZED
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            correlation_id=correlation_id,
            details=details,
            user_message=user_message,
            severity=severity,
            category=ErrorCategory.AUTHENTICATION,
            http_status=http_status
        )


class InvalidCredentialsError(AuthError):
    """Unknown technician, inactive account or wrong password."""

    def __init__(self, correlation_id: Optional[str] = None):
        super().__init__(
            message="Invalid credentials",
            error_code="INVALID_CREDENTIALS",
            correlation_id=correlation_id,
            user_message="Invalid credentials.",
            severity=ErrorSeverity.LOW
        )


class TokenError(AuthError):
    """Bearer token missing, malformed or expired."""

    def __init__(
        self,
        reason: str = "Token missing",
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            message=f"Token rejected: {reason}",
            error_code="UNAUTHORIZED",
            correlation_id=correlation_id,
            details={"reason": reason},
            user_message="Your session is missing or has expired. Please sign in again.",
            severity=ErrorSeverity.LOW
        )


class ForbiddenError(ServiceError):
    """Authenticated technician lacks the role for the action."""

    def __init__(
        self,
        action: str,
        role: Optional[str] = None,
        correlation_id: Optional[str] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(
            message=f"Role '{role}' may not {action}",
            error_code="FORBIDDEN",
            correlation_id=correlation_id,
            details={"action": action, "role": role},
            user_message=user_message or f"Only an administrator can {action}.",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.AUTHORIZATION,
            http_status=HTTPStatus.FORBIDDEN
        )


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(ServiceError):
    """Input validation failed."""

    def __init__(
        self,
        field: str,
        message: str,
        correlation_id: Optional[str] = None,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        user_message: Optional[str] = None
    ):
        details: Dict[str, Any] = {"field": field, "validation_message": message}
        if validation_errors:
            details["validation_errors"] = validation_errors

        super().__init__(
            message=f"Validation failed for {field}: {message}",
            error_code="VALIDATION_ERROR",
            correlation_id=correlation_id,
            details=details,
            user_message=user_message or f"Invalid {field}: {message}",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            http_status=HTTPStatus.BAD_REQUEST
        )


class MissingFieldsError(ValidationError):
    """Required job fields are blank."""

    def __init__(
        self,
        fields: List[str],
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            field=", ".join(fields),
            message="required",
            correlation_id=correlation_id,
            validation_errors=[{"field": f, "message": "required"} for f in fields],
            user_message="Required fields are missing to save the task."
        )


# =============================================================================
# BUSINESS DOMAIN ERRORS
# =============================================================================

class BusinessError(ServiceError):
    """Base class for business domain errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.BUSINESS_RULE,
        http_status: HTTPStatus = HTTPStatus.BAD_REQUEST
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            correlation_id=correlation_id,
            details=details,
            user_message=user_message,
            severity=severity,
            category=category,
            http_status=http_status
        )


class ResourceNotFoundError(BusinessError):
    """Base class for resource not found errors."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Union[int, str],
        correlation_id: Optional[str] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(
            message=f"{resource_type} '{resource_id}' not found",
            error_code="NOT_FOUND",
            correlation_id=correlation_id,
            details={"resource_type": resource_type, "resource_id": resource_id},
            user_message=user_message or f"{resource_type} not found.",
            category=ErrorCategory.RESOURCE_NOT_FOUND,
            http_status=HTTPStatus.NOT_FOUND
        )


class TaskNotFoundError(ResourceNotFoundError):
    """Backend task row not found."""

    def __init__(self, task_id: str, correlation_id: Optional[str] = None):
        super().__init__("Task", task_id, correlation_id=correlation_id)


class JobNotFoundError(ResourceNotFoundError):
    """Job not present in the local store."""

    def __init__(self, job_id: str, correlation_id: Optional[str] = None):
        super().__init__(
            "Job",
            job_id,
            correlation_id=correlation_id,
            user_message="The task you are trying to edit was not found."
        )


class NotFoundError(ResourceNotFoundError):
    """The remote store does not know the id being operated on."""

    def __init__(
        self,
        resource_id: str,
        message: Optional[str] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            "Remote task",
            resource_id,
            correlation_id=correlation_id,
            user_message=message or "The task was not found in the cloud."
        )


class ConflictError(BusinessError):
    """Operation conflicts with current state."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONFLICT",
        correlation_id: Optional[str] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            correlation_id=correlation_id,
            user_message=user_message,
            category=ErrorCategory.CONFLICT,
            http_status=HTTPStatus.CONFLICT
        )


class SyncInProgressError(ConflictError):
    """A reconciliation pass is already running on this device."""

    def __init__(self, correlation_id: Optional[str] = None):
        super().__init__(
            message="Synchronization already in progress",
            error_code="SYNC_IN_PROGRESS",
            correlation_id=correlation_id,
            user_message="A sync is already running. Please wait for it to finish."
        )


# =============================================================================
# REMOTE SOURCE ERRORS
# =============================================================================

class RemoteSourceError(ServiceError):
    """Base class for failures talking to a remote job source."""

    def __init__(
        self,
        message: str,
        error_code: str,
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        http_status: HTTPStatus = HTTPStatus.BAD_GATEWAY
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            correlation_id=correlation_id,
            details=details,
            user_message=user_message or "Could not reach the cloud. Please try again later.",
            severity=severity,
            category=ErrorCategory.EXTERNAL_SERVICE,
            http_status=http_status
        )


class NetworkError(RemoteSourceError):
    """Transport failure reaching the remote store."""

    def __init__(
        self,
        target: str,
        reason: str,
        correlation_id: Optional[str] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(
            message=f"Network failure reaching {target}: {reason}",
            error_code="NETWORK_ERROR",
            correlation_id=correlation_id,
            details={"target": target, "reason": reason},
            user_message=user_message or "Network failure while connecting to the cloud."
        )


class ParseError(RemoteSourceError):
    """Remote response not in the expected envelope."""

    def __init__(
        self,
        target: str,
        reason: str,
        correlation_id: Optional[str] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(
            message=f"Unexpected response from {target}: {reason}",
            error_code="PARSE_ERROR",
            correlation_id=correlation_id,
            details={"target": target, "reason": reason},
            user_message=user_message or "The cloud returned a response in an unexpected format."
        )


class RemoteRequestError(RemoteSourceError):
    """Remote store rejected the request with an error envelope."""

    def __init__(
        self,
        status_code: int,
        remote_code: Optional[str],
        message: str,
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            message=f"Remote error {status_code} ({remote_code}): {message}",
            error_code=remote_code or "REMOTE_ERROR",
            correlation_id=correlation_id,
            details={"status_code": status_code, "remote_code": remote_code},
            user_message=message
        )


class PayloadTooLargeError(RemoteSourceError):
    """Attached photos/signature exceed the remote body limit."""

    def __init__(self, target: str, correlation_id: Optional[str] = None):
        super().__init__(
            message=f"Payload too large for {target}",
            error_code="PAYLOAD_TOO_LARGE",
            correlation_id=correlation_id,
            details={"target": target},
            user_message="The attached information is too large. Upload lighter photos and try again.",
            severity=ErrorSeverity.LOW
        )


# =============================================================================
# INFRASTRUCTURE ERRORS
# =============================================================================

class ConfigurationError(ServiceError):
    """Required configuration is missing."""

    def __init__(self, setting: str, correlation_id: Optional[str] = None):
        super().__init__(
            message=f"Missing configuration: {setting}",
            error_code="CONFIGURATION_ERROR",
            correlation_id=correlation_id,
            details={"setting": setting},
            user_message=f"{setting} is not configured.",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.INFRASTRUCTURE
        )


class DatabaseUnavailableError(ServiceError):
    """Backend database cannot be reached."""

    def __init__(self, reason: str, correlation_id: Optional[str] = None):
        super().__init__(
            message=f"Database unavailable: {reason}",
            error_code="DB_UNAVAILABLE",
            correlation_id=correlation_id,
            details={"reason": reason},
            user_message="Could not connect to the database.",
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.INFRASTRUCTURE
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def create_error_response(
    error: ServiceError,
    include_details: bool = False
) -> Dict[str, Any]:
    """Create the standardized `{error: {...}}` envelope.

    Args:
        error: ServiceError instance
        include_details: Whether to include internal details

    Returns:
        Standardized error response dictionary
    """
    return {"error": error.to_dict(include_sensitive=include_details)}
