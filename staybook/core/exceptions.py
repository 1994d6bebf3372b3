"""
Custom application exceptions
"""

from typing import Optional, Dict, Any

from sqlalchemy.exc import DBAPIError

# SQLSTATE codes reported by PostgreSQL
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"


class StaybookException(Exception):
    """Base exception for Staybook application"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(StaybookException):
    """Authentication related errors"""

    def __init__(self, message: str = "Could not validate credentials", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
            details=details
        )


class ForbiddenError(StaybookException):
    """Caller does not own the resource being mutated"""

    def __init__(self, message: str = "Not allowed to modify this resource", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            details=details
        )


class NotFoundError(StaybookException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404
        )


class ValidationError(StaybookException):
    """Validation errors"""

    def __init__(self, message: str, field: Optional[str] = None, code: str = "VALIDATION_ERROR"):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            details=details
        )


class InvalidDateRangeError(ValidationError):
    """end_date is not after start_date"""

    def __init__(self, message: str = "end_date must be after start_date"):
        super().__init__(message=message, field="end_date", code="INVALID_DATE_RANGE")


class CorruptedBookingError(ValidationError):
    """Stored booking has a non-positive duration, so its locked rate cannot be derived"""

    def __init__(self, booking_id: Any = None, nights: int = 0):
        super().__init__(
            message="Stored booking has a non-positive number of nights",
            code="CORRUPTED_BOOKING",
        )
        self.details = {"booking_id": booking_id, "nights": nights}


class BookingOverlapError(StaybookException):
    """Requested dates overlap a confirmed booking"""

    def __init__(self, venue_id: Any = None):
        super().__init__(
            message="Dates overlap an existing booking",
            code="BOOKING_OVERLAP",
            status_code=400,
            details={"venue_id": venue_id} if venue_id is not None else {}
        )


class UniqueConstraintError(StaybookException):
    """Duplicate unique key"""

    def __init__(self, message: str = "Resource already exists", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="UNIQUE_VIOLATION",
            status_code=409,
            details=details
        )


class ForeignKeyViolationError(StaybookException):
    """Foreign key violation, usually a cascade ordering bug"""

    def __init__(self, message: str = "Foreign key constraint violated", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="FOREIGN_KEY_VIOLATION",
            status_code=500,
            details=details
        )


class ConcurrencyError(StaybookException):
    """Concurrency conflict error"""

    def __init__(self, message: str = "Resource was modified by another request, please retry"):
        super().__init__(
            message=message,
            code="CONCURRENCY_ERROR",
            status_code=409
        )


class InternalServerError(StaybookException):
    """Unexpected failure, details are logged and never returned to the caller"""

    def __init__(self, message: str = "An internal server error occurred"):
        super().__init__(
            message=message,
            code="INTERNAL_ERROR",
            status_code=500
        )


def storage_error_kind(exc: DBAPIError) -> Optional[str]:
    """
    Classify a storage error as "unique", "foreign_key" or "concurrency".

    PostgreSQL drivers expose the SQLSTATE; SQLite only reports a message.
    """
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is None and orig is not None:
        cause = getattr(orig, "__cause__", None)
        sqlstate = getattr(cause, "sqlstate", None)

    if sqlstate == UNIQUE_VIOLATION:
        return "unique"
    if sqlstate == FOREIGN_KEY_VIOLATION:
        return "foreign_key"
    if sqlstate in (SERIALIZATION_FAILURE, DEADLOCK_DETECTED):
        return "concurrency"

    text = str(orig if orig is not None else exc)
    if "UNIQUE constraint failed" in text:
        return "unique"
    if "FOREIGN KEY constraint failed" in text:
        return "foreign_key"
    if "database is locked" in text:
        return "concurrency"
    return None


def translate_storage_error(exc: DBAPIError, unique_message: Optional[str] = None) -> Optional[StaybookException]:
    """
    Map a known storage error to a domain error.

    Returns None for unrecognised errors, which callers re-raise unchanged.
    """
    kind = storage_error_kind(exc)
    if kind == "unique":
        return UniqueConstraintError(unique_message or "Resource already exists")
    if kind == "foreign_key":
        return ForeignKeyViolationError()
    if kind == "concurrency":
        return ConcurrencyError()
    return None
