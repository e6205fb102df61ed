"""
Exception types raised by the Indodax private API client.
"""
from typing import Any, Dict, Optional


class IndodaxError(Exception):
    """Base class for every error raised while talking to the private API."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize the error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code, if the server sent one
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Return the error as a plain dictionary."""
        return {
            "exception_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class TransportError(IndodaxError):
    """Network or HTTP-layer failure (timeout, DNS, connection reset, bad status)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        details: Dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, "TRANSPORT_ERROR", details)
        self.status_code = status_code


class APIError(IndodaxError):
    """The server answered with ``success=0``."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message, error_code or "API_ERROR")


class MalformedResponseError(IndodaxError):
    """The response does not have the structure an operation relies on."""

    def __init__(self, message: str, field: Optional[str] = None):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        super().__init__(message, "MALFORMED_RESPONSE", details)
        self.field = field
