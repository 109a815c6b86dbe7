"""Domain errors for the reservation engine and their HTTP rendering.

Business outcomes (not found, no slots, below committed, already finalized)
are returned to the caller for direct display. ``AbortedError`` wraps
persistence faults and is always safe to retry.
"""
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    context: dict[str, Any] | None = None


class ParishError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(self, detail: str | None = None, **context: Any) -> None:
        self.detail = detail or self.__class__.detail
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.error, detail=self.detail, context=self.context)


class NotFoundError(ParishError):
    """Mass, reservation or activity record does not exist (404)."""

    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class NoAvailableSlotsError(ParishError):
    """The requested pool has no remaining capacity (409).

    Expected under contention; the caller may pick another mass.
    """

    status_code = 409
    error = "no_available_slots"
    detail = "No available slots for this mass"


class BelowCommittedError(ParishError):
    """A capacity resize would drop below live reservations (409)."""

    status_code = 409
    error = "below_committed"
    detail = "Cannot reduce slots below the number already booked"

    def __init__(self, pool: str, committed: int) -> None:
        super().__init__(
            f"Cannot reduce {pool} slots below {committed} as they are already booked",
            pool=pool,
            committed=committed,
        )
        self.pool = pool
        self.committed = committed


class AlreadyFinalizedError(ParishError):
    """The reservation already reached a terminal status (409)."""

    status_code = 409
    error = "already_finalized"
    detail = "Reservation has already been finalized"


class HasReservationsError(ParishError):
    """A mass cannot be deleted while reservations reference it (409)."""

    status_code = 409
    error = "has_reservations"
    detail = "Mass still has reservations attached"


class UnauthorizedError(ParishError):
    """No caller identity was supplied (401)."""

    status_code = 401
    error = "unauthorized"
    detail = "Authentication required"


class ForbiddenError(ParishError):
    """Caller role does not permit the operation (403)."""

    status_code = 403
    error = "forbidden"
    detail = "Access denied"


class AbortedError(ParishError):
    """Transaction rolled back on a persistence fault (503)."""

    status_code = 503
    error = "aborted"
    detail = "The operation could not be completed, please try again"


async def parish_error_handler(request: Request, exc: ParishError) -> JSONResponse:
    """Render a ParishError as JSON."""
    logger.info(
        "Request failed: %s (status=%d, path=%s)",
        exc.detail,
        exc.status_code,
        request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the domain error handler with the FastAPI app."""
    app.add_exception_handler(ParishError, parish_error_handler)
