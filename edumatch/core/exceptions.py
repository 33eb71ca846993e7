"""
Domain errors raised by the service layer.

Errors carry a human-readable message only. Routers translate them
into HTTP responses (see edumatch.api.routes).
"""


class EduMatchError(Exception):
    """Base class for all service-level errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(EduMatchError):
    """A test, question set, application or profile does not exist."""


class PermissionDeniedError(EduMatchError):
    """The caller asked for a record owned by somebody else."""


class DuplicateSubmissionError(EduMatchError):
    """A result already exists and the duplicate policy is 'reject'."""


class ValidationError(EduMatchError):
    """Input violates a data invariant (e.g. a single-choice question with two correct options)."""
