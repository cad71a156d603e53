"""
Exception hierarchy for the ticket proxy.

Every error carries the HTTP status it maps to and renders to the stable
``{"error": ..., "details": ...}`` JSON shape returned by the API.
"""

from typing import Any


class BugTicketError(Exception):
    """Base exception for all proxy errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        body: dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ConfigurationError(BugTicketError):
    """Server is missing required configuration."""

    status_code = 500


# ── Request errors (400, 429) ──────────────────────────


class RequestValidationFailed(BugTicketError):
    """Missing or malformed request input."""

    status_code = 400


class InvalidTrackerUrlError(RequestValidationFailed):
    """Tracker URL failed the scheme/host allow-list."""


class RateLimitExceededError(BugTicketError):
    """Caller exceeded the request budget for the current window."""

    status_code = 429

    def __init__(self, retry_after: float) -> None:
        super().__init__("Too many requests. Please try again in a minute.")
        self.retry_after = retry_after


# ── Upstream errors ────────────────────────────────────


class UpstreamError(BugTicketError):
    """An external API (tracker or LLM) rejected or failed a call."""

    status_code = 502


class TrackerAuthenticationError(UpstreamError):
    status_code = 401

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            "Authentication failed. Please check your email and API token.",
            details,
        )


class TrackerPermissionError(UpstreamError):
    status_code = 403

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            "Access denied. Your account may not have permission.",
            details,
        )


class TrackerNotFoundError(UpstreamError):
    status_code = 404

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            "Jira instance not found. Please check your URL.",
            details,
        )


class AttachmentTooLargeError(UpstreamError):
    """The tracker refused an attachment with 413."""

    status_code = 413

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            "One or more files are too large for Jira. "
            "Please remove large files and try again.",
            details,
        )


class TrackerAPIError(UpstreamError):
    """Any other non-2xx tracker response; status is passed through."""


class LLMAPIError(UpstreamError):
    """Non-2xx response from the LLM provider; status is passed through."""


class UpstreamUnavailableError(UpstreamError):
    """Network failure reaching an upstream service."""

    status_code = 502


class UpstreamTimeoutError(UpstreamError):
    """An upstream call exceeded its timeout."""

    status_code = 504
