"""Application error taxonomy shared by the services and the HTTP layer."""
from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base error carrying an HTTP status and a stable machine-readable code."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class InvalidRequestError(AppError):
    status_code = 400
    code = "INVALID_REQUEST"


class UnsupportedAirportError(AppError):
    status_code = 400
    code = "UNSUPPORTED_AIRPORT"

    def __init__(self, message: str = "Unsupported origin or destination") -> None:
        super().__init__(message)


class FetchError(AppError):
    """A single upstream call failed; the retry loop may try again."""

    status_code = 502
    code = "FETCH_ERROR"
    retryable = True

    def __init__(self, message: str, *, upstream_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class RetryExhaustedError(AppError):
    status_code = 502
    code = "FETCH_RETRY_FAILED"

    def __init__(self, attempts: int, last_error: str) -> None:
        super().__init__(f"Failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class TripNotFoundError(AppError):
    status_code = 404
    code = "TRIP_NOT_FOUND"

    def __init__(self, message: str = "Trip not found") -> None:
        super().__init__(message)


class TripAlreadySavedError(AppError):
    status_code = 409
    code = "TRIP_ALREADY_SAVED"

    def __init__(self, message: str = "Trip already saved in database") -> None:
        super().__init__(message)


class DatabaseError(AppError):
    status_code = 500
    code = "DB_ERROR"
