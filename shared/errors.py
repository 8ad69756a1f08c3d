"""
Shared error handling for the Data Governance Catalog.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import get_request_id


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class GovernanceError(Exception):
    """Base exception for catalog services."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=get_request_id(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(GovernanceError):
    """Client input failed validation."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(GovernanceError):
    """Requested record does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class DependencyError(GovernanceError):
    """A backing store (database or cache) is unreachable or failed."""

    status_code = 500

    def __init__(self, dependency: str, message: str = "Dependency failure", details: Optional[Dict[str, Any]] = None):
        self.dependency = dependency
        super().__init__("DEPENDENCY_ERROR", message, details)


class ServiceStartupError(GovernanceError):
    """A dependency could not be initialized at process start."""

    def __init__(self, dependency: str, message: str = "Startup failed", details: Optional[Dict[str, Any]] = None):
        self.dependency = dependency
        super().__init__("STARTUP_FAILED", f"{dependency}: {message}", details)
