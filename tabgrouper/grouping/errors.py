"""
Error taxonomy for tab grouping.

Every failure surfaced to a caller is a TabGroupingError subclass carrying a
human-readable message. None of them are retried inside the package. The
validator has no error kind of its own: it repairs instead of failing.
"""

from __future__ import annotations


class TabGroupingError(RuntimeError):
    """Base class for all caller-visible grouping failures."""

    kind: str = "error"
    http_status: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, object]:
        return {"ok": False, "error": self.message, "kind": self.kind}


# --- Configuration / gate (no call attempted) ---


class ConfigError(TabGroupingError):
    """Missing credential or endpoint, or an endpoint that is not allowed."""

    kind = "config_error"
    http_status = 400


class TooSoon(TabGroupingError):
    """Raised by the analysis gate while the cooldown window is still open."""

    kind = "too_soon"
    http_status = 429

    def __init__(self, wait_seconds: int):
        super().__init__(f"Please wait {wait_seconds}s before analyzing again.")
        self.wait_seconds = wait_seconds

    def to_dict(self) -> dict[str, object]:
        return {**super().to_dict(), "wait_seconds": self.wait_seconds}


class NoTabs(TabGroupingError):
    """Raised when there is nothing to analyze or apply."""

    kind = "no_tabs"
    http_status = 400

    def __init__(self, message: str = "No tabs to organize."):
        super().__init__(message)


# --- Transport ---


class NetworkError(TabGroupingError):
    """The connection attempt itself failed (DNS, refused, timeout)."""

    kind = "network_error"
    http_status = 502

    def __init__(self, detail: str):
        super().__init__(f"Network error: {detail}")
        self.detail = detail


class Unauthorized(TabGroupingError):
    kind = "unauthorized"
    http_status = 502

    def __init__(self, message: str = "Invalid API key. Check Settings."):
        super().__init__(message)


class RateLimited(TabGroupingError):
    kind = "rate_limited"
    http_status = 503

    def __init__(self, message: str = "Rate limited by provider. Wait a moment and try again."):
        super().__init__(message)


class ApiError(TabGroupingError):
    """Any other non-2xx provider response."""

    kind = "api_error"
    http_status = 502

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# --- Response ---


class EmptyResponse(TabGroupingError):
    kind = "empty_response"
    http_status = 502

    def __init__(self, message: str = "Empty response from AI provider. Try again."):
        super().__init__(message)


class InvalidJson(TabGroupingError):
    kind = "invalid_json"
    http_status = 502

    def __init__(self, message: str = "AI returned invalid JSON. Try again."):
        super().__init__(message)


class MissingGroups(TabGroupingError):
    kind = "missing_groups"
    http_status = 502

    def __init__(self, message: str = "Response missing groups. Try again."):
        super().__init__(message)


# --- Apply boundary ---


class NothingApplied(TabGroupingError):
    kind = "nothing_applied"
    http_status = 409

    def __init__(self, message: str = "No groups could be applied. Try re-analyzing."):
        super().__init__(message)
