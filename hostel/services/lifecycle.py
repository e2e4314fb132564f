import logging
from datetime import date, datetime, timedelta, timezone

import httpx

from hostel.exceptions.custom import (
    BookingCreationError,
    BookingNotFoundError,
    CheckInIncompleteError,
    RateLimitError,
    StaleBookingError,
    StoreError,
)
from hostel.mappers.policies import (
    append_refund_note,
    cancellation_message,
    days_until_check_in,
    is_refund_eligible,
    loyalty_description,
    loyalty_points_for,
    payment_status_for,
)
from hostel.mappers.pricing import booking_totals
from hostel.schemas.lifecycle import (
    Booking,
    BookingDetails,
    BookingStatus,
    CancellationResult,
    CheckInRecord,
    CheckOutResult,
    ConfirmPaymentResult,
    CreateBookingInput,
    CreateBookingResult,
    ExpireResult,
    Guest,
    GuestContact,
    PaymentRecordResult,
    PaymentStatus,
    RefundPreview,
    RoomAssignment,
    ServiceAssignment,
    TodayMovements,
)
from hostel.services.notifications import NotificationService
from hostel.stores.base import BookingStore, Filter, eq, gte, in_, lt, lte

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
BOOKINGS_TABLE = "bookings"
BOOKING_ROOMS_TABLE = "booking_rooms"
BOOKING_SERVICES_TABLE = "booking_services"
CHECK_IN_TABLE = "check_in_data"
LOYALTY_TABLE = "loyalty_transactions"
ROOMS_TABLE = "rooms"

# Anything a store write can fail with: rejected rows, 429s and transport errors
STORE_FAILURES = (StoreError, RateLimitError, httpx.HTTPError)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BookingLifecycleManager:
    """Creates bookings and drives their status machine.

    pending_payment -> confirmed -> checked_in -> checked_out, with
    cancelled / no_show side exits. Status writes are blind unless the caller
    passes the status it expects the booking to be in.
    """

    def __init__(
        self,
        store: BookingStore,
        notifications: NotificationService | None = None,
        pending_payment_ttl_hours: int = 24,
    ):
        self._store = store
        self._notifications = notifications
        self._pending_ttl = timedelta(hours=pending_payment_ttl_hours)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def _resolve_guest(self, contact: GuestContact) -> str:
        """Find the guest by email and refresh their details, or create them."""
        try:
            existing = await self._store.select(
                USERS_TABLE, [eq("email", contact.email)], limit=1
            )
        except STORE_FAILURES as exc:
            raise BookingCreationError("Failed to look up guest", stage="guest") from exc

        details = {
            k: v
            for k, v in {
                "full_name": contact.full_name,
                "phone": contact.phone,
                "nationality": contact.nationality,
            }.items()
            if v
        }

        if existing:
            user_id = existing[0]["id"]
            if details:
                try:
                    await self._store.update(USERS_TABLE, [eq("id", user_id)], details)
                except STORE_FAILURES:
                    logger.warning("Could not refresh details for guest %s", user_id)
            return user_id

        try:
            created = await self._store.insert(
                USERS_TABLE, {"email": contact.email, "loyalty_points": 0, **details}
            )
        except STORE_FAILURES as exc:
            raise BookingCreationError("Failed to create user", stage="guest") from exc
        logger.info("Created guest %s for %s", created[0]["id"], contact.email)
        return created[0]["id"]

    async def create(self, data: CreateBookingInput) -> CreateBookingResult:
        """Create a booking with its room, service and check-in rows.

        Rows are written one table at a time. If the room rows cannot be
        written the booking row is deleted again so no booking without rooms
        stays visible. Service rows are best-effort.
        """
        user_id = await self._resolve_guest(data.guest_info)

        totals = booking_totals(
            (r.price_per_night for r in data.rooms),
            ((s.price_at_booking, s.quantity) for s in data.services),
            data.check_in,
            data.check_out,
        )
        paid = data.payment_status == PaymentStatus.paid
        status = BookingStatus.confirmed if paid else BookingStatus.pending_payment

        logger.info(
            "Creating booking for %s: %d nights, rooms=%.2f services=%.2f total=%.2f",
            data.guest_info.email,
            totals.nights,
            totals.rooms_total,
            totals.extras_total,
            totals.total,
        )

        try:
            rows = await self._store.insert(
                BOOKINGS_TABLE,
                {
                    "user_id": user_id,
                    "check_in": data.check_in,
                    "check_out": data.check_out,
                    "guests_count": data.guests_count,
                    "total_amount": totals.total,
                    "paid_amount": totals.total if paid else 0,
                    "special_requests": data.special_requests,
                    "source": data.source,
                    "status": status,
                    "payment_status": data.payment_status,
                },
            )
        except STORE_FAILURES as exc:
            raise BookingCreationError("Failed to create booking", stage="booking") from exc
        booking = Booking(**rows[0])

        if data.rooms:
            try:
                await self._store.insert(
                    BOOKING_ROOMS_TABLE,
                    [
                        {
                            "booking_id": booking.id,
                            "room_id": r.room_id,
                            "bed_id": r.bed_id,
                            "price_per_night": r.price_per_night,
                        }
                        for r in data.rooms
                    ],
                )
            except STORE_FAILURES as exc:
                logger.error("Error creating rooms for booking %s: %s", booking.id, exc)
                await self._compensate(booking.id)
                raise BookingCreationError(
                    "Failed to create booking rooms", stage="rooms"
                ) from exc

        services_attached = True
        if data.services:
            try:
                await self._store.insert(
                    BOOKING_SERVICES_TABLE,
                    [
                        {
                            "booking_id": booking.id,
                            "service_id": s.service_id,
                            "quantity": s.quantity,
                            "price_at_booking": s.price_at_booking,
                            "scheduled_date": s.scheduled_date,
                        }
                        for s in data.services
                    ],
                )
            except STORE_FAILURES as exc:
                services_attached = False
                logger.warning(
                    "Booking %s created but services failed to attach: %s",
                    booking.id,
                    exc,
                )

        try:
            await self._store.insert(
                CHECK_IN_TABLE, {"booking_id": booking.id, "terms_accepted": False}
            )
        except STORE_FAILURES as exc:
            logger.error("Could not create check-in record for %s: %s", booking.id, exc)

        logger.info("Booking %s created (%s)", booking.id, booking.status)
        await self._notify_created(booking, data.guest_info, [r.room_id for r in data.rooms])

        return CreateBookingResult(
            booking_id=booking.id,
            total_amount=totals.total,
            status=booking.status,
            services_attached=services_attached,
        )

    async def _compensate(self, booking_id: str) -> None:
        try:
            await self._store.delete(BOOKINGS_TABLE, [eq("id", booking_id)])
            logger.info("Rolled back booking %s", booking_id)
        except STORE_FAILURES as exc:
            # Orphaned booking row without rooms; needs manual cleanup
            logger.error(
                "Compensating delete failed for booking %s: %s", booking_id, exc
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, booking_id: str) -> Booking:
        rows = await self._store.select(BOOKINGS_TABLE, [eq("id", booking_id)], limit=1)
        if not rows:
            raise BookingNotFoundError(booking_id)
        return Booking(**rows[0])

    async def get_details(self, booking_id: str) -> BookingDetails:
        booking = await self.get(booking_id)
        rooms = await self._store.select(BOOKING_ROOMS_TABLE, [eq("booking_id", booking_id)])
        services = await self._store.select(
            BOOKING_SERVICES_TABLE, [eq("booking_id", booking_id)]
        )
        check_in = await self._store.select(
            CHECK_IN_TABLE, [eq("booking_id", booking_id)], limit=1
        )
        return BookingDetails(
            booking=booking,
            guest=await self._guest(booking.user_id),
            rooms=[RoomAssignment(**r) for r in rooms],
            services=[ServiceAssignment(**s) for s in services],
            check_in_record=CheckInRecord(**check_in[0]) if check_in else None,
        )

    async def list_bookings(
        self,
        status: BookingStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Booking]:
        filters: list[Filter] = []
        if status:
            filters.append(eq("status", status))
        if start_date:
            filters.append(gte("check_in", start_date))
        if end_date:
            filters.append(lte("check_out", end_date))
        rows = await self._store.select(BOOKINGS_TABLE, filters, order="check_in.desc")
        return [Booking(**r) for r in rows]

    async def today_movements(self, today: date | None = None) -> TodayMovements:
        today = today or date.today()
        check_ins = await self._store.select(
            BOOKINGS_TABLE,
            [
                eq("check_in", today),
                in_("status", [BookingStatus.confirmed, BookingStatus.pending_payment]),
            ],
        )
        check_outs = await self._store.select(
            BOOKINGS_TABLE,
            [eq("check_out", today), eq("status", BookingStatus.checked_in)],
        )
        return TodayMovements(
            check_ins=[Booking(**r) for r in check_ins],
            check_outs=[Booking(**r) for r in check_outs],
        )

    async def _guest(self, user_id: str | None) -> Guest | None:
        if not user_id:
            return None
        rows = await self._store.select(USERS_TABLE, [eq("id", user_id)], limit=1)
        return Guest(**rows[0]) if rows else None

    # ------------------------------------------------------------------
    # Status machine
    # ------------------------------------------------------------------

    async def _write(
        self,
        booking_id: str,
        values: dict,
        expected_status: BookingStatus | None = None,
    ) -> Booking:
        filters = [eq("id", booking_id)]
        if expected_status is not None:
            filters.append(eq("status", expected_status))

        rows = await self._store.update(
            BOOKINGS_TABLE, filters, {**values, "updated_at": _now()}
        )
        if rows:
            return Booking(**rows[0])

        # Nothing matched: either the booking is gone or its status moved on
        await self.get(booking_id)
        raise StaleBookingError(booking_id, str(expected_status))

    async def transition(
        self,
        booking_id: str,
        target: BookingStatus,
        expected_status: BookingStatus | None = None,
    ) -> Booking:
        """Set the booking status.

        Without *expected_status* this is a blind write: the only check is
        that the booking exists. With it, the write only lands while the
        booking is still in that status.
        """
        booking = await self._write(booking_id, {"status": target}, expected_status)
        logger.info("Booking %s -> %s", booking_id, target)
        return booking

    async def complete_check_in(
        self, booking_id: str, expected_status: BookingStatus | None = None
    ) -> Booking:
        rows = await self._store.select(CHECK_IN_TABLE, [eq("booking_id", booking_id)], limit=1)
        if not rows or not rows[0].get("terms_accepted"):
            await self.get(booking_id)
            raise CheckInIncompleteError(booking_id)
        return await self.transition(booking_id, BookingStatus.checked_in, expected_status)

    async def check_out(
        self, booking_id: str, expected_status: BookingStatus | None = None
    ) -> CheckOutResult:
        """Close the stay and award loyalty points once per booking."""
        booking = await self.transition(booking_id, BookingStatus.checked_out, expected_status)
        points = loyalty_points_for(booking.total_amount)

        if points <= 0 or not booking.user_id:
            return CheckOutResult(booking=booking, points_awarded=0)

        already = await self._store.select(
            LOYALTY_TABLE, [eq("booking_id", booking_id)], limit=1
        )
        if already:
            logger.info("Loyalty points already awarded for booking %s", booking_id)
            return CheckOutResult(booking=booking, points_awarded=0)

        await self._store.insert(
            LOYALTY_TABLE,
            {
                "user_id": booking.user_id,
                "points": points,
                "description": loyalty_description(booking_id),
                "booking_id": booking_id,
            },
        )
        guest = await self._guest(booking.user_id)
        if guest:
            await self._store.update(
                USERS_TABLE,
                [eq("id", guest.id)],
                {"loyalty_points": guest.loyalty_points + points},
            )

        logger.info("Awarded %d points to %s for booking %s", points, booking.user_id, booking_id)
        return CheckOutResult(booking=booking, points_awarded=points)

    async def mark_no_show(
        self, booking_id: str, expected_status: BookingStatus | None = None
    ) -> Booking:
        return await self.transition(booking_id, BookingStatus.no_show, expected_status)

    def refund_preview(self, check_in: date, today: date | None = None) -> RefundPreview:
        days = days_until_check_in(check_in, today or date.today())
        return RefundPreview(eligible=is_refund_eligible(days), days_until_check_in=days)

    async def cancel(self, booking_id: str, today: date | None = None) -> CancellationResult:
        """Cancel a booking and flag a manual refund when policy allows.

        Money is never moved here; an eligible paid booking is marked
        refunded and gets a note for staff. A booking already marked refunded
        keeps its note as is.
        """
        existing = await self.get(booking_id)
        preview = self.refund_preview(existing.check_in, today)

        booking = await self.transition(booking_id, BookingStatus.cancelled)

        refund_processed = False
        if (
            preview.eligible
            and booking.paid_amount > 0
            and existing.payment_status != PaymentStatus.refunded
        ):
            booking = await self._write(
                booking_id,
                {
                    "payment_status": PaymentStatus.refunded,
                    "special_requests": append_refund_note(booking.special_requests),
                },
            )
            refund_processed = True

        result = CancellationResult(
            booking=booking,
            refund_eligible=preview.eligible,
            refund_processed=refund_processed,
            days_until_check_in=preview.days_until_check_in,
            message=cancellation_message(
                preview.eligible, booking.paid_amount, preview.days_until_check_in
            ),
        )
        logger.info(
            "Booking %s cancelled %d days before check-in (refund=%s)",
            booking_id,
            preview.days_until_check_in,
            refund_processed,
        )
        await self._notify_cancelled(result)
        return result

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def record_payment(self, booking_id: str, amount: float) -> PaymentRecordResult:
        """Add a manual payment (cash, transfer) to the booking."""
        booking = await self.get(booking_id)
        paid_amount = round(booking.paid_amount + amount, 2)
        payment_status = PaymentStatus(payment_status_for(paid_amount, booking.total_amount))
        await self._write(
            booking_id, {"paid_amount": paid_amount, "payment_status": payment_status}
        )
        return PaymentRecordResult(
            booking_id=booking_id, paid_amount=paid_amount, payment_status=payment_status
        )

    async def confirm_payment(self, booking_id: str) -> ConfirmPaymentResult:
        """Mark the booking fully paid and confirmed in one write."""
        booking = await self.get(booking_id)
        if (
            booking.status == BookingStatus.confirmed
            and booking.payment_status == PaymentStatus.paid
        ):
            return ConfirmPaymentResult(booking=booking, already_confirmed=True)

        booking = await self._write(
            booking_id,
            {
                "paid_amount": booking.total_amount,
                "payment_status": PaymentStatus.paid,
                "status": BookingStatus.confirmed,
            },
        )
        logger.info("Payment confirmed for booking %s", booking_id)

        guest = await self._guest(booking.user_id)
        if guest and self._notifications:
            await self._notifications.send_booking_confirmation(
                booking, guest.email, guest.full_name or "Guest"
            )
        return ConfirmPaymentResult(booking=booking, already_confirmed=False)

    async def expire_pending(self, now: datetime | None = None) -> ExpireResult:
        """Cancel pending_payment bookings older than the payment TTL."""
        cutoff = (now or _now()) - self._pending_ttl
        rows = await self._store.update(
            BOOKINGS_TABLE,
            [eq("status", BookingStatus.pending_payment), lt("created_at", cutoff)],
            {"status": BookingStatus.cancelled, "updated_at": _now()},
        )
        ids = [r["id"] for r in rows]
        if ids:
            logger.info("Expired %d pending bookings", len(ids))
        return ExpireResult(expired_count=len(ids), expired_ids=ids)

    # ------------------------------------------------------------------
    # Notifications (best-effort)
    # ------------------------------------------------------------------

    async def _room_names(self, room_ids: list[str]) -> list[str]:
        if not room_ids:
            return []
        try:
            rows = await self._store.select(ROOMS_TABLE, [in_("id", sorted(set(room_ids)))])
        except STORE_FAILURES:
            logger.warning("Could not load room names for confirmation email")
            return []
        return [r.get("name", "Room") for r in rows]

    async def _notify_created(
        self, booking: Booking, contact: GuestContact, room_ids: list[str]
    ) -> None:
        if self._notifications is None:
            return
        await self._notifications.send_booking_confirmation(
            booking,
            contact.email,
            contact.full_name,
            room_names=await self._room_names(room_ids),
        )

    async def _notify_cancelled(self, result: CancellationResult) -> None:
        if self._notifications is None:
            return
        try:
            guest = await self._guest(result.booking.user_id)
        except STORE_FAILURES:
            logger.warning("Could not load guest for cancellation email")
            return
        if guest:
            await self._notifications.send_cancellation(
                result, guest.email, guest.full_name or "Guest"
            )
