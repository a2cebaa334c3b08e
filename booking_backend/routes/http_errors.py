from fastapi import HTTPException, status

from booking_backend.scheduling.errors import (
    BookingError,
    ClosedError,
    ConfigurationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and Postgres credentials.'

BOOKING_ERROR_STATUS_CODES = (
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (SlotUnavailableError, status.HTTP_400_BAD_REQUEST),
    (ClosedError, status.HTTP_400_BAD_REQUEST),
    (ConfigurationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def booking_error_to_http(exc: BookingError) -> HTTPException:
    for error_type, status_code in BOOKING_ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )
