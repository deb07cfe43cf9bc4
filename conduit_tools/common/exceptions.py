"""
================================================================================
Harness Exceptions
================================================================================

Error taxonomy shared by the API client, the browser layer and the reporter.

    HarnessError
     ├── ConfigError          fatal, raised before any test runs
     ├── AuthError            non-2xx on login
     │    └── TokenMismatchError
     ├── ApiError             transport-level failure (no HTTP response)
     ├── WaitTimeoutError     wait predicate never satisfied
     ├── UiInteractionError   element interaction failed after one retry
     └── PreconditionNotMet   scenario cannot be set up -> reported as skip

Non-2xx API responses are NOT errors. They are returned as ApiResponse values.

================================================================================
"""

from __future__ import annotations

from typing import Any, Optional


class HarnessError(Exception):
    """Base class for all harness errors."""
    pass


class ConfigError(HarnessError):
    """Raised when configuration cannot be resolved. Aborts the run."""
    pass


class AuthError(HarnessError):
    """
    Raised when login returns a non-2xx status.

    The raw status code and response are kept so negative tests can assert
    on them without re-issuing the request.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class TokenMismatchError(AuthError):
    """Raised when the browser and API channels hold tokens for different subjects."""
    pass


class ApiError(HarnessError):
    """Raised on connection-level failures (DNS, refused, timeout)."""

    def __init__(self, message: str, method: str = "", url: str = ""):
        super().__init__(message)
        self.method = method
        self.url = url


class WaitTimeoutError(HarnessError, TimeoutError):
    """
    Raised when a wait condition is not satisfied within its timeout.

    Attributes:
        description: Human-readable description of the awaited condition
        timeout: Configured timeout in seconds
        elapsed: Time actually spent waiting
        last_state: Last value observed from the predicate
        last_error: Last exception message raised by the predicate, if any
    """

    def __init__(
        self,
        description: str,
        timeout: float,
        elapsed: float,
        last_state: Any = None,
        last_error: Optional[str] = None,
    ):
        self.description = description
        self.timeout = timeout
        self.elapsed = elapsed
        self.last_state = last_state
        self.last_error = last_error
        super().__init__(
            f"Timeout after {elapsed:.2f}s (limit {timeout}s) waiting for: {description}. "
            f"Last state: {last_state!r}, last error: {last_error}"
        )


class UiInteractionError(HarnessError):
    """Raised when a browser interaction fails after the transparent retry."""
    pass


class PreconditionNotMet(HarnessError):
    """Raised when a scenario's preconditions cannot be established."""
    pass


__all__ = [
    "HarnessError",
    "ConfigError",
    "AuthError",
    "TokenMismatchError",
    "ApiError",
    "WaitTimeoutError",
    "UiInteractionError",
    "PreconditionNotMet",
]
