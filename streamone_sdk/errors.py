"""
StreamOne SDK Errors

Typed exceptions for error handling.
"""

from typing import Any, Dict, Optional


class StreamOneError(Exception):
    """Base exception for all StreamOne SDK errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "UNKNOWN_ERROR"
        self.details = details or {}


class ConfigurationError(StreamOneError):
    """Missing or contradictory configuration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class PreconditionError(StreamOneError):
    """An operation was called in a state that does not allow it."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="PRECONDITION_FAILED", details=details)


class NoActiveSessionError(PreconditionError):
    """A session-authenticated operation was attempted without an active session."""

    def __init__(self) -> None:
        super().__init__("No active session")


class ApplicationAuthenticationRequiredError(PreconditionError):
    """Sessions are only supported with application authentication."""

    def __init__(self, authentication_type: Optional[str] = None) -> None:
        super().__init__(
            "Sessions are only supported when application authentication is used",
            details={"authenticationType": authentication_type},
        )


class RequestAlreadyExecutedError(PreconditionError):
    """A request can be executed exactly once."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Request has already been executed: {path}",
            details={"path": path},
        )


class SessionNotStartedError(PreconditionError):
    """Start status was requested before start() was called."""

    def __init__(self) -> None:
        super().__init__("The start() method has not been called on this instance")


class RequestFailedError(StreamOneError):
    """The API answered with a non-zero status or an invalid response."""

    def __init__(
        self,
        status: int,
        status_message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            f"API request failed ({status}): {status_message}",
            code="REQUEST_FAILED",
            details={**(details or {}), "status": status, "statusmessage": status_message},
        )
        self.status = status
        self.status_message = status_message


class TransportError(StreamOneError):
    """Base class for failures while talking to the API over the wire."""


class NetworkError(TransportError):
    """Network-related error (connection, timeout, etc.)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="NETWORK_ERROR", details=details)


class ServerError(TransportError):
    """Server-side error (5xx)."""

    def __init__(
        self, status_code: int, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(
            f"Server error ({status_code}): {message}",
            code="SERVER_ERROR",
            details={**(details or {}), "statusCode": status_code},
        )


class RateLimitError(TransportError):
    """Rate limit exceeded (429)."""

    def __init__(self, retry_after: Optional[int] = None) -> None:
        super().__init__(
            f"Rate limit exceeded. Retry after: {retry_after or 'unknown'}",
            code="RATE_LIMIT_EXCEEDED",
            details={"retryAfter": retry_after},
        )
