"""Exception hierarchy.

Permission and validation errors are shown to the user. Transient write
failures are absorbed by the optimistic saver and only logged.
"""

from typing import Any, Optional


class ReadTrackError(Exception):
    """Base error with a short machine-readable code."""

    code = "ERROR"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class PermissionDeniedError(ReadTrackError):
    """The current identity may not touch the requested records."""

    code = "PERMISSION_DENIED"

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


class ValidationError(ReadTrackError):
    """User input rejected before anything is written."""

    code = "VALIDATION_ERROR"


class NoBookSelectedError(ValidationError):
    """The stopwatch was started without a book."""

    def __init__(self, message: str = "Select a book first."):
        super().__init__(message)


class NotFoundError(ReadTrackError):
    """Record does not exist in the user's namespace."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class TransientWriteError(ReadTrackError):
    """A write failed for a reason expected to clear up on retry."""

    code = "TRANSIENT_WRITE"


class NotificationUnavailableError(ReadTrackError):
    """A notification channel could not deliver."""

    code = "NOTIFICATION_UNAVAILABLE"
