"""Custom exception hierarchy for Spacefy."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Auth errors
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Lookup errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    PERMISSION_NOT_CONFIGURED = "PERMISSION_NOT_CONFIGURED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Wiring errors (route declared with an impossible configuration)
    MISCONFIGURED_ROUTE = "MISCONFIGURED_ROUTE"

    # Concurrency / uniqueness errors
    CONFLICT = "CONFLICT"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SpacefyError(Exception):
    """
    Base exception for all Spacefy errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with success, error, message, and details fields
        """
        return {
            "success": False,
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class AuthenticationError(SpacefyError):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(SpacefyError):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class ResourceNotFoundError(SpacefyError):
    """A user-data resource (branch, device, user...) does not exist."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            f"{resource} not found: {resource_id}",
            ErrorCode.RESOURCE_NOT_FOUND,
            status_code=404,
            details={"resource": resource, "id": resource_id}
        )


class PermissionNotFoundError(SpacefyError):
    """A route asks for a permission name that is not in the catalog.

    This is a seeding/deployment defect, not a user error, hence 500.
    """

    def __init__(self, permission_name: str):
        super().__init__(
            f"Permission {permission_name} not found",
            ErrorCode.PERMISSION_NOT_CONFIGURED,
            status_code=500,
            details={"permission": permission_name}
        )


class ValidationError(SpacefyError):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class MisconfiguredRouteError(SpacefyError):
    """A route was wired with an impossible configuration (e.g. unknown ownership scope)."""

    def __init__(self, message: str):
        super().__init__(
            message,
            ErrorCode.MISCONFIGURED_ROUTE,
            status_code=500,
        )


class ConflictError(SpacefyError):
    """A unique value (role name, permission name...) is already taken."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details
        )

