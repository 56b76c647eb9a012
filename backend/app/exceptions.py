"""
Filament Finder - Application Exceptions

Every error raised on purpose by the service derives from
FilamentFinderException. The handler registered in app.main turns them into
JSON responses of the form:

    {"error": "<human readable message>", "code": "<ERROR_CODE>", "details": {...}}

"details" is omitted when empty.
"""
from typing import Any, Dict, Optional


class FilamentFinderException(Exception):
    """Base class for all handled service errors."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body


class FilamentValidationError(FilamentFinderException):
    """Caller-fixable problem with a submitted filament."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class MaterialNotFoundError(FilamentFinderException):
    """Raised when a material name has no matching record"""

    status_code = 404
    error_code = "NOT_FOUND"


class CatalogStorageError(FilamentFinderException):
    """
    The catalog document could not be read, parsed or written.

    The message is safe to show to clients; the underlying cause is chained
    (``raise ... from exc``) and logged, never returned.
    """

    status_code = 500
    error_code = "STORAGE_ERROR"
