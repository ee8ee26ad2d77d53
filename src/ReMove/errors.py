"""Exception hierarchy for ReMove."""

from __future__ import annotations

import time


class ReMoveError(Exception):
    """Base class for all ReMove errors."""


class TransportError(ReMoveError):
    """Raised for network or remote service failures."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(TransportError):
    """Raised when the remote service reports that a resource does not exist."""

    def __init__(self, message: str = "Not found."):
        super().__init__(message, status_code=404)


class RateLimitError(TransportError):
    """Raised when the GitHub rate limit is exceeded."""

    def __init__(self, reset_at: int):
        self.reset_at = reset_at
        wait = max(0, reset_at - int(time.time()))
        super().__init__(
            f"GitHub API rate limit exceeded. Resets in {wait} seconds.",
            status_code=403,
        )


class AuthenticationFailed(ReMoveError):
    """Raised when a token is invalid, expired or lacks the required scopes."""

    def __init__(self, message: str = "Authentication failed. Please check your token."):
        super().__init__(message)


class WorkflowError(ReMoveError):
    """Raised when a workflow operation is not allowed in the current state."""
