"""Exception types shared across the catalog, gateway and coordinators."""

from typing import Optional


class VocabForgeError(Exception):
    """Base class for all errors raised by this package."""


class RemoteUnavailableError(VocabForgeError):
    """The remote persistence API could not be reached or answered non-2xx.

    Callers in the store layer convert this into a fallback read or a
    local-only write; it is never surfaced to the top level.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GenerationError(VocabForgeError):
    """A generation capability call (text, image or audio) failed."""


class ValidationError(VocabForgeError, ValueError):
    """Input rejected before any state change (duplicate app, empty term, ...)."""


class PermissionDeniedError(VocabForgeError):
    """The user lacks the scope required for an edit or action."""

    def __init__(self, message: str, scope: Optional[str] = None) -> None:
        super().__init__(message)
        self.scope = scope


class AuthenticationError(VocabForgeError):
    """Login was rejected by the remote API."""
