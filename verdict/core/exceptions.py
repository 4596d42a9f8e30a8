"""Custom exception hierarchy for the verdict game.

Every service-layer error inherits from VerdictError, giving the API
layer a single base class to catch and translate into structured JSON
responses. The families mirror how a client should react: fix the
input, log in, refresh stale state, or give up on a missing resource.
"""

from __future__ import annotations

from typing import Any


class VerdictError(Exception):
    """Base exception for all verdict game errors."""

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.details: dict[str, Any] = details or {}
        super().__init__(message)


class InvalidInputError(VerdictError):
    """Raised when caller input is malformed or out of range."""


class AuthenticationRequiredError(VerdictError):
    """Raised when an endpoint needs a logged-in caller."""


class ModeratorRequiredError(VerdictError):
    """Raised when an endpoint needs moderator permission."""


class StateConflictError(VerdictError):
    """Raised when the request is valid but the stored state forbids it.

    The client view is stale; it should refresh instead of retrying.
    """


class DuplicateVoteError(StateConflictError):
    """Raised when a user votes twice on the same case."""


class VotingClosedError(StateConflictError):
    """Raised when a vote arrives after the case left its open window."""


class NotRevealedError(StateConflictError):
    """Raised when results are requested before the reveal time."""


class AlreadyReviewedError(StateConflictError):
    """Raised when a moderator reviews a submission that is no longer pending."""


class NotFoundError(VerdictError):
    """Raised when a requested resource does not exist."""


class RateLimitError(VerdictError):
    """Raised when a per-user quota is exhausted."""

    def __init__(
        self,
        message: str,
        *,
        retry_after: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.retry_after = retry_after


class StorageError(VerdictError):
    """Raised when a key-value store operation fails."""


class PlatformError(VerdictError):
    """Raised when a hosting-platform call fails after retries."""
