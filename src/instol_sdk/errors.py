"""Exception hierarchy shared by the instol client and CLI."""

from __future__ import annotations
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from instol_sdk.navigation import NavigationIntent


class InstolError(RuntimeError):
    """Base class for errors raised by the instol client."""


class ConfigurationError(InstolError):
    """Raised when CLI or client configuration cannot be resolved."""


class MissingCredentialError(InstolError):
    """Raised when an OAuth redirect carried neither a token nor an error."""


class OAuthCallbackError(InstolError):
    """Raised when the identity provider reports an error on the callback."""

    def __init__(self, reason: str) -> None:
        """Store the provider supplied error code."""
        super().__init__(f"OAuth error: {reason}")
        self.reason = reason


class UnauthorizedError(InstolError):
    """Raised when a protected call is rejected with 401 or 403.

    By the time this error is raised the credential has already been cleared
    and a navigation intent towards the login entry point has been emitted.
    """

    def __init__(
        self,
        message: str = "Session expired. Run 'instol auth login' to sign in again.",
        *,
        status_code: int | None = None,
        navigation: NavigationIntent | None = None,
    ) -> None:
        """Initialise the error with the HTTP status and emitted intent."""
        super().__init__(message)
        self.status_code = status_code
        self.navigation = navigation


class ValidationRejectedError(InstolError):
    """Raised when the backend declines a request with a user-facing message."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise the error with the server message and HTTP status."""
        super().__init__(message)
        self.status_code = status_code


class TransportFailureError(InstolError):
    """Raised when the backend cannot be reached or returns an unreadable body."""


class ConfirmationMismatchError(InstolError):
    """Raised when a destructive action is attempted without a matching confirmation."""


__all__ = [
    "ConfigurationError",
    "ConfirmationMismatchError",
    "InstolError",
    "MissingCredentialError",
    "OAuthCallbackError",
    "TransportFailureError",
    "UnauthorizedError",
    "ValidationRejectedError",
]
