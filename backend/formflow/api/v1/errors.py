"""Translate service exceptions to HTTP errors."""

from fastapi import HTTPException

from formflow.services.exceptions import (
    FormflowError,
    IllegalTransition,
    NotFound,
    StoreError,
    ValidationError,
)


def to_http_exception(exc: FormflowError, *, not_found_status: int = 404) -> HTTPException:
    """Map a service exception to its HTTP status.

    Submissions pass ``not_found_status=400``: a missing form there is a bad
    request rather than a missing resource.
    """
    if isinstance(exc, NotFound):
        return HTTPException(status_code=not_found_status, detail=str(exc))
    if isinstance(exc, (ValidationError, IllegalTransition)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, StoreError):
        return HTTPException(status_code=500, detail="Failed to persist changes")
    return HTTPException(status_code=500, detail=str(exc))
