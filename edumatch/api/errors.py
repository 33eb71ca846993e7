"""
Service error -> HTTP error mapping.

Usage:
    try:
        ...
    except EduMatchError as e:
        raise http_error(e)
"""

from fastapi import HTTPException

from edumatch.core.exceptions import (
    DuplicateSubmissionError, EduMatchError, NotFoundError,
    PermissionDeniedError, ValidationError
)

STATUS_CODES = {
    NotFoundError: 404,
    PermissionDeniedError: 403,
    DuplicateSubmissionError: 409,
    ValidationError: 400,
}


def http_error(error: EduMatchError) -> HTTPException:
    status_code = STATUS_CODES.get(type(error), 500)
    return HTTPException(status_code=status_code, detail=error.message)
