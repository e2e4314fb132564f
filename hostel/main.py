import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from hostel.config import Settings
from hostel.exceptions.custom import (
    BookingCreationError,
    BookingNotFoundError,
    CatalogError,
    CheckInIncompleteError,
    PaymentError,
    RateLimitError,
    StaleBookingError,
    StoreError,
)
from hostel.exceptions.handlers import (
    booking_creation_error_handler,
    booking_not_found_handler,
    catalog_error_handler,
    check_in_incomplete_handler,
    payment_error_handler,
    rate_limit_error_handler,
    stale_booking_handler,
    store_error_handler,
)
from hostel.routers.bookings import router as bookings_router
from hostel.routers.cron import router as cron_router
from hostel.routers.flow import router as flow_router
from hostel.routers.reports import router as reports_router
from hostel.services.catalog import CatalogService
from hostel.services.lifecycle import BookingLifecycleManager
from hostel.services.notifications import NotificationService
from hostel.services.payments import PaymentService
from hostel.services.postgrest import PostgrestStore
from hostel.stores.base import BookingStore
from hostel.stores.drafts import DraftStore
from hostel.stores.memory import MemoryStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    async with httpx.AsyncClient(timeout=30.0) as client:
        store: BookingStore
        if settings.store_backend == "memory":
            logger.warning("Using in-memory store, data is lost on restart")
            store = MemoryStore()
        else:
            store = PostgrestStore(
                client, settings.postgrest_url, settings.postgrest_service_key
            )

        notifications = NotificationService(
            client,
            settings.resend_api_key,
            settings.email_from,
            settings.site_url,
            staff_email=settings.staff_email,
        )

        # GreenPay is optional; without it bookings are created unpaid
        payments: PaymentService | None = None
        if settings.greenpay_merchant_id:
            payments = PaymentService(
                client,
                settings.greenpay_base_url,
                settings.greenpay_merchant_id,
                settings.greenpay_terminal_id,
                settings.greenpay_secret,
            )

        app.state.settings = settings
        app.state.store = store
        app.state.catalog_service = CatalogService(store)
        app.state.payment_service = payments
        app.state.lifecycle_manager = BookingLifecycleManager(
            store,
            notifications,
            pending_payment_ttl_hours=settings.pending_payment_ttl_hours,
        )
        app.state.draft_store = DraftStore(max_sessions=settings.max_draft_sessions)

        yield


app = FastAPI(title="Hostel Booking", lifespan=lifespan)

app.add_exception_handler(StoreError, store_error_handler)
app.add_exception_handler(CatalogError, catalog_error_handler)
app.add_exception_handler(PaymentError, payment_error_handler)
app.add_exception_handler(BookingNotFoundError, booking_not_found_handler)
app.add_exception_handler(BookingCreationError, booking_creation_error_handler)
app.add_exception_handler(CheckInIncompleteError, check_in_incomplete_handler)
app.add_exception_handler(StaleBookingError, stale_booking_handler)
app.add_exception_handler(RateLimitError, rate_limit_error_handler)

app.include_router(flow_router)
app.include_router(bookings_router)
app.include_router(cron_router)
app.include_router(reports_router)
