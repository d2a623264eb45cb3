"""
Exception hierarchy for AdPulse.

Validation errors are caller bugs and are never retried. Upstream errors
are surfaced as-is; the fetch core does not retry them.
"""

from __future__ import annotations


class AdPulseError(Exception):
    """Base exception for all AdPulse errors."""
    pass


class ValidationError(AdPulseError):
    """Malformed request descriptor."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class CredentialsError(AdPulseError):
    """No access token could be obtained from the credential source."""
    pass


class UpstreamError(AdPulseError):
    """Transport failure, timeout, or non-2xx response from the upstream API."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        error_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.error_code = error_code
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.status_code is not None:
            return f"{message} (status {self.status_code})"
        return message
