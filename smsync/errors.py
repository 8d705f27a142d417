"""
Exception hierarchy for the sync engine.

    SmsyncError (base)
    ├── ConfigurationError
    ├── GatewayError
    │   ├── AuthenticationError   (HTTP 401/403)
    │   ├── RateLimitError        (HTTP 429)
    │   └── TransportError        (no HTTP response)
    ├── CheckpointError
    └── CorrelationError
"""

from datetime import datetime, timezone
from typing import Any, Optional


class SmsyncError(Exception):
    """
    Base exception for all sync errors.

    Attributes:
        message: Human-readable error message
        context: Additional context (platform, order id, path, ...)
    """

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({context_str})"

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class ConfigurationError(SmsyncError):
    """Missing or placeholder configuration. Fatal at startup."""


class GatewayError(SmsyncError):
    """
    A remote platform call failed.

    Carries the HTTP status code and the remote error body when a response
    was received.
    """

    def __init__(
        self,
        message: str,
        *,
        platform: str,
        status_code: Optional[int] = None,
        body: Any = None,
        context: Optional[dict[str, Any]] = None,
    ):
        context = dict(context or {})
        context["platform"] = platform
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context)
        self.platform = platform
        self.status_code = status_code
        self.body = body


class AuthenticationError(GatewayError):
    """Credentials rejected by the remote platform."""


class RateLimitError(GatewayError):
    """Remote platform throttled the request."""


class TransportError(GatewayError):
    """Network-level failure, no HTTP response received."""


class CheckpointError(SmsyncError):
    """Checkpoint file could not be read or written."""


class CorrelationError(SmsyncError):
    """Marketplace order id could not be recovered from a storefront order."""
