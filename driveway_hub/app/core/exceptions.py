"""
Custom exceptions and error handlers for consistent error responses.

Every error leaves the API as ``{"error": <message>, "code": <CODE>,
"details": {...}}``. Domain code raises ``AppException`` subclasses;
the global handlers below render them.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from driveway_hub.app.core.config import settings

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


# ----------------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------------

class InvalidTimeRangeError(AppException):
    """Raised when a booking window ends at or before its start."""

    def __init__(self, message: str = "End time must be after start time"):
        super().__init__(
            message=message,
            error_code="INVALID_TIME_RANGE",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class StartTimeInPastError(AppException):
    def __init__(self):
        super().__init__(
            message="Booking start time cannot be in the past",
            error_code="START_TIME_IN_PAST",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class InvalidPricingError(AppException):
    """Raised when pricing inputs are not usable (non-positive rate)."""

    def __init__(self, message: str = "Hourly rate must be positive"):
        super().__init__(
            message=message,
            error_code="INVALID_DATA",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


# ----------------------------------------------------------------------------
# Business rules
# ----------------------------------------------------------------------------

class DrivewayNotAvailableError(AppException):
    def __init__(self, driveway_id: Any = None):
        super().__init__(
            message="Driveway is not available for booking",
            error_code="DRIVEWAY_NOT_AVAILABLE",
            status_code=status.HTTP_409_CONFLICT,
            details={"driveway_id": driveway_id} if driveway_id is not None else None,
        )


class VehicleTooLargeError(AppException):
    """Raised when a vehicle exceeds one of the driveway's size limits."""

    def __init__(self, exceeded: Iterable[str]):
        exceeded = list(exceeded)
        super().__init__(
            message=f"Vehicle is too large for this driveway ({', '.join(exceeded)})",
            error_code="VEHICLE_TOO_LARGE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"exceeded": exceeded},
        )


class BookingConflictError(AppException):
    """Raised when the requested window overlaps an occupying booking."""

    def __init__(self, conflicting_ids: Optional[Iterable[int]] = None):
        details = None
        if conflicting_ids is not None:
            details = {"conflicting_booking_ids": list(conflicting_ids)}
        super().__init__(
            message="Driveway is already booked for the requested time",
            error_code="BOOKING_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


class CancellationTooLateError(AppException):
    def __init__(self, window_hours: int):
        super().__init__(
            message=f"Bookings can only be cancelled at least {window_hours} hours before start",
            error_code="CANCELLATION_TOO_LATE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"cancellation_window_hours": window_hours},
        )


class InvalidStatusTransitionError(AppException):
    """Raised when a booking status change is not allowed from its current status."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot change booking status from {current} to {target}",
            error_code="INVALID_STATUS_TRANSITION",
            status_code=status.HTTP_409_CONFLICT,
            details={"current_status": current, "requested_status": target},
        )


class NotAtDrivewayError(AppException):
    def __init__(self, distance_meters: float, radius_meters: float):
        super().__init__(
            message="Vehicle is not at the driveway",
            error_code="NOT_AT_DRIVEWAY",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={
                "distance_meters": round(distance_meters, 1),
                "arrival_radius_meters": radius_meters,
            },
        )


class NoShowTooEarlyError(AppException):
    def __init__(self):
        super().__init__(
            message="A booking can only be marked as no-show after its start time",
            error_code="NO_SHOW_TOO_EARLY",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class InvalidOAuthStateError(AppException):
    """Raised when the OAuth ``state`` is malformed, stale or for another user."""

    def __init__(self, message: str = "Invalid OAuth state"):
        super().__init__(
            message=message,
            error_code="INVALID_OAUTH_STATE",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


# ----------------------------------------------------------------------------
# Access / lookup
# ----------------------------------------------------------------------------

class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """
    Raised when requested resource is not found.

    The error code is derived from the resource name, e.g. ``Booking`` gives
    ``BOOKING_NOT_FOUND``.
    """

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code=f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class TeslaNotConnectedError(AppException):
    """Raised when no usable Tesla token exists and the user must re-authenticate."""

    def __init__(self):
        super().__init__(
            message="Tesla account is not connected or the session has expired",
            error_code="TESLA_NOT_CONNECTED",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


# ----------------------------------------------------------------------------
# Upstream / configuration
# ----------------------------------------------------------------------------

class TeslaConfigurationError(AppException):
    """Raised when Tesla OAuth settings are missing."""

    def __init__(self, missing: Iterable[str]):
        missing = list(missing)
        super().__init__(
            message=f"Tesla integration is not configured: missing {', '.join(missing)}",
            error_code="TESLA_CONFIG_MISSING",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"missing": missing},
        )


class TeslaAPIError(AppException):
    """
    Raised when the Tesla auth server or Fleet API returns an error.

    ``provider_message`` keeps the upstream response text; it is only
    exposed to clients in development.
    """

    def __init__(self, operation: str, provider_message: str = "", upstream_status: Optional[int] = None):
        self.operation = operation
        self.provider_message = provider_message
        self.upstream_status = upstream_status
        details = {"operation": operation}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(
            message=f"Tesla API request failed: {operation}",
            error_code="TESLA_API_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )


# ----------------------------------------------------------------------------
# Integrity error classification
# ----------------------------------------------------------------------------

# PostgreSQL SQLSTATE codes
_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"
_CHECK_VIOLATION = "23514"
_EXCLUSION_VIOLATION = "23P01"


def _sqlstate(exc: IntegrityError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return code
    # asyncpg errors are wrapped by the SQLAlchemy adapter
    cause = getattr(orig, "__cause__", None)
    return getattr(cause, "sqlstate", None)


def classify_integrity_error(exc: IntegrityError) -> AppException:
    """Map a database integrity violation to an application error."""
    code = _sqlstate(exc)
    text = str(getattr(exc, "orig", exc)).lower()

    if code == _EXCLUSION_VIOLATION or "exclusion constraint" in text:
        return BookingConflictError()
    if code == _UNIQUE_VIOLATION or "unique" in text or "duplicate key" in text:
        return AppException("Resource already exists", "DUPLICATE_RESOURCE", status.HTTP_409_CONFLICT)
    if code == _FOREIGN_KEY_VIOLATION or "foreign key" in text:
        return AppException("Referenced resource does not exist", "INVALID_REFERENCE", status.HTTP_400_BAD_REQUEST)
    if code == _CHECK_VIOLATION or "check constraint" in text:
        return AppException("Invalid data", "INVALID_DATA", status.HTTP_400_BAD_REQUEST)
    return AppException("Database constraint violated", "INVALID_DATA", status.HTTP_400_BAD_REQUEST)


# ----------------------------------------------------------------------------
# Global exception handlers
# ----------------------------------------------------------------------------

def _error_body(message: str, code: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"error": message, "code": code, "details": jsonable_encoder(details or {}, custom_encoder={Decimal: float})}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    details = dict(exc.details)
    if isinstance(exc, TeslaAPIError):
        logger.warning(
            "Tesla API error during %s (status=%s): %s",
            exc.operation, exc.upstream_status, exc.provider_message,
        )
        if settings.is_development and exc.provider_message:
            details["error"] = exc.provider_message
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.error_code, details),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        500: "INTERNAL_ERROR"
    }

    error_code = error_code_map.get(exc.status_code, "HTTP_ERROR")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), error_code),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for request validation errors; rendered as 400."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Validation error", "VALIDATION_ERROR", {"errors": exc.errors()}),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Handler for database integrity violations that escaped the service layer."""
    mapped = classify_integrity_error(exc)
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, mapped.error_code)
    details = dict(mapped.details)
    if settings.is_development:
        details["error"] = str(getattr(exc, "orig", exc))
    return JSONResponse(
        status_code=mapped.status_code,
        content=_error_body(mapped.message, mapped.error_code, details),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        "Unhandled exception on %s %s: %s: %s",
        request.method, request.url.path, type(exc).__name__, exc,
        exc_info=exc,
    )
    details = {}
    if settings.is_development:
        details["error"] = str(exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("An internal server error occurred", "INTERNAL_ERROR", details),
    )


def register_exception_handlers(app) -> None:
    """Attach all global handlers to ``app``."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
