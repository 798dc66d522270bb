"""
domains/listing/errors.py

Error kinds raised by the moderation workflow, the filter engine and the
listing store. Each kind carries the HTTP status the API answers with, so the
server maps them in one place and the client can map responses back.
"""

from __future__ import annotations


class ListingError(Exception):
    """Base error for listing operations."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ListingError):
    """Malformed input (bad filter bound, missing id, empty field)."""

    status_code = 400


class Forbidden(ListingError):
    """Actor's role or ownership does not allow the operation."""

    status_code = 403


class NotFound(ListingError):
    """Listing does not exist or is outside the caller's scope."""

    status_code = 404


class InvalidState(ListingError):
    """Current status does not allow the requested transition."""

    status_code = 409


class StoreError(ListingError):
    """Entity store failure. Unrecoverable for the current request."""

    status_code = 500


ERRORS_BY_STATUS = {
    400: ValidationError,
    403: Forbidden,
    404: NotFound,
    409: InvalidState,
    422: ValidationError,
    500: StoreError,
}


def error_for_status(status_code: int, message: str) -> ListingError:
    """Build the error kind matching an HTTP status (unknown codes → ListingError)."""
    error_cls = ERRORS_BY_STATUS.get(status_code)
    if error_cls is None:
        error = ListingError(message)
        error.status_code = status_code
        return error
    return error_cls(message)
