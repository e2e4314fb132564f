import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import (
    BookingCreationError,
    BookingNotFoundError,
    CatalogError,
    CheckInIncompleteError,
    PaymentError,
    RateLimitError,
    StaleBookingError,
    StoreError,
)

logger = logging.getLogger(__name__)


async def store_error_handler(_request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store error: %s (status=%s)", exc.message, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Store error: {exc.message}"},
    )


async def catalog_error_handler(_request: Request, exc: CatalogError) -> JSONResponse:
    logger.error("Catalog error: %s (status=%s)", exc.message, exc.status_code)
    status_code = 404 if exc.status_code == 404 else 502
    return JSONResponse(
        status_code=status_code,
        content={"detail": f"Catalog error: {exc.message}", "retryable": True},
    )


async def payment_error_handler(_request: Request, exc: PaymentError) -> JSONResponse:
    logger.error("Payment error: %s (status=%s)", exc.message, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Payment error: {exc.message}"},
    )


async def booking_not_found_handler(
    _request: Request, exc: BookingNotFoundError
) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def booking_creation_error_handler(
    _request: Request, exc: BookingCreationError
) -> JSONResponse:
    logger.error("Booking creation failed at %s: %s", exc.stage, exc.message)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "stage": exc.stage},
    )


async def check_in_incomplete_handler(
    _request: Request, exc: CheckInIncompleteError
) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


async def stale_booking_handler(
    _request: Request, exc: StaleBookingError
) -> JSONResponse:
    logger.warning("Stale transition for booking %s", exc.booking_id)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


async def rate_limit_error_handler(_request: Request, exc: RateLimitError) -> JSONResponse:
    logger.warning("Rate limit hit for %s", exc.service)
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded for {exc.service}"},
    )
