"""
Exceptions for the Gemini Proxy.

Every error carries the HTTP status the caller should see and a JSON body
with at least an ``error`` field.
"""

from typing import Any, Dict, Optional, Sequence


class ProxyError(Exception):
    """
    Base exception class for proxy errors.

    Subclasses set ``status_code``; ``to_dict()`` gives the caller-facing body.
    """

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body

    def get_http_status_code(self) -> int:
        return self.status_code


class MissingFieldsError(ProxyError):
    """
    Raised when an inbound request lacks one or more required fields.

    Attributes:
        missing_fields: Names of the missing fields, in declaration order
    """

    status_code = 400

    def __init__(self, missing_fields: Sequence[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(f"Missing required fields: {', '.join(self.missing_fields)}")


class UpstreamTimeoutError(ProxyError):
    """The upstream did not answer within the configured timeout."""

    status_code = 504

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"request timed out after {timeout_ms}ms")


class UpstreamApplicationError(ProxyError):
    """The upstream answered with an error; its status is mirrored to the caller."""

    def __init__(self, status_code: int, message: str, details: Optional[Any] = None):
        self.status_code = status_code
        super().__init__(message, details)


class UpstreamConnectionError(ProxyError):
    """The upstream could not be reached (refused, DNS failure, reset)."""

    status_code = 500

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__("failed to reach upstream service", details=cause)
