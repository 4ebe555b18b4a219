from __future__ import annotations

from typing import Optional


class SolutionSyncError(RuntimeError):
    """Base error for solution-sync."""


class NotAuthenticatedError(SolutionSyncError):
    """No token is available for the requested operation."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class NoRepositorySelectedError(SolutionSyncError):
    """Push requested before a target repository was chosen."""

    def __init__(self, message: str = "No repository selected") -> None:
        super().__init__(message)


class NoSubmissionError(SolutionSyncError):
    """Push requested with no submission captured."""

    def __init__(self, message: str = "No submission to push") -> None:
        super().__init__(message)


class SessionExpiredError(SolutionSyncError):
    """A remote call answered 401; the stored credential is no longer usable."""

    def __init__(self, message: str = "Session expired — please sign in again") -> None:
        super().__init__(message)


class RemoteRejectedError(SolutionSyncError):
    """Remote API answered with a non-2xx, non-401 status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportFailureError(SolutionSyncError):
    """Network or response-decoding failure; the remote could not be reached."""


class AuthenticationError(SolutionSyncError):
    """The authenticate collaborator reported a failure."""


__all__ = [
    "SolutionSyncError",
    "NotAuthenticatedError",
    "NoRepositorySelectedError",
    "NoSubmissionError",
    "SessionExpiredError",
    "RemoteRejectedError",
    "TransportFailureError",
    "AuthenticationError",
]
