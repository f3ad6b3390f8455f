class SessionTimerError(Exception):
    """Base exception for session timer and session store failures."""


class NotFoundError(SessionTimerError):
    """Raised when a session is missing or not owned by the caller."""


class ValidationError(SessionTimerError):
    """Raised when activity input is rejected (empty, duplicate, malformed)."""


class NetworkError(SessionTimerError):
    """Raised when the session backend cannot be reached or answers badly."""
