from typing import Optional


class SurveyError(Exception):
    """Base exception for submission processing errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(SurveyError):
    """Submitted data is unusable (missing email, empty selection, missing priority)."""

    status_code = 400


class ConflictOnCreate(SurveyError):
    """A record with the same (email, timestamp) key already exists."""

    status_code = 409

    def __init__(self, email: str, timestamp: str) -> None:
        super().__init__(f"Submission already exists for {email} at {timestamp}")
        self.email = email
        self.timestamp = timestamp


class NotFoundError(SurveyError):
    """Update attempted for a key that was never created."""

    def __init__(self, email: str, timestamp: str) -> None:
        super().__init__(f"Submission not found for {email} at {timestamp}")
        self.email = email
        self.timestamp = timestamp


class BackendUnavailable(SurveyError):
    """The submission store could not be reached or rejected the operation."""
    pass
