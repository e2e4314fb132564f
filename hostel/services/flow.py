import logging
from collections.abc import Callable, Mapping
from datetime import date, timedelta

import httpx

from hostel.exceptions.custom import (
    BookingCreationError,
    BookingNotFoundError,
    CatalogError,
    PaymentError,
    RateLimitError,
    StaleBookingError,
    StoreError,
)
from hostel.mappers.pricing import compute_summary, nights_between
from hostel.mappers.steps import (
    active_steps,
    can_advance,
    next_step,
    previous_step,
    progress,
    step_index,
)
from hostel.schemas.booking import (
    BookingData,
    BookingDraft,
    BookingMode,
    BookingStep,
    ExtraSelection,
    GuestInfo,
    PackageRef,
    PricingSummary,
    RoomSelection,
    StepConfig,
)
from hostel.schemas.lifecycle import (
    CreateBookingInput,
    GuestContact,
    PaymentStatus,
    RoomLine,
    ServiceLine,
)
from hostel.schemas.payments import CardDetails
from hostel.schemas.responses import FlowState
from hostel.services.catalog import CatalogService
from hostel.services.lifecycle import BookingLifecycleManager
from hostel.services.payments import PaymentService
from hostel.stores.drafts import DraftStore

logger = logging.getLogger(__name__)

DEFAULT_GUESTS = 2

_SUBMIT_ERRORS = (
    BookingCreationError,
    BookingNotFoundError,
    PaymentError,
    RateLimitError,
    StaleBookingError,
    StoreError,
    httpx.HTTPError,
)


def _parse_query_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value.split("T", 1)[0])
    except ValueError:
        return None


def build_booking_input(data: BookingData) -> CreateBookingInput:
    """Turn the draft into the lifecycle manager's create input.

    One room line per bed (or whole room) sold, so the server prices each
    line as rate x nights. Wizard bookings always start unpaid; only a
    successful card charge marks them paid.
    """
    if data.guest_info is None:
        raise ValueError("guest_info is required")
    guest = data.guest_info

    rooms: list[RoomLine] = []
    for selection in data.rooms:
        for _ in range(selection.quantity):
            rooms.append(
                RoomLine(
                    room_id=selection.room_id,
                    bed_id=selection.bed_id if selection.quantity == 1 else None,
                    price_per_night=selection.price_per_night,
                )
            )

    services = [
        ServiceLine(
            service_id=extra.service_id,
            quantity=extra.quantity,
            price_at_booking=extra.price,
            scheduled_date=extra.date or data.service_dates.get(extra.service_id),
        )
        for extra in data.extras
    ]

    return CreateBookingInput(
        check_in=data.check_in,
        check_out=data.check_out,
        guests_count=data.guests,
        rooms=rooms,
        services=services,
        special_requests=guest.special_requests,
        payment_status=PaymentStatus.pending,
        guest_info=GuestContact(
            email=guest.email,
            full_name=guest.full_name,
            phone=guest.phone or None,
            nationality=guest.nationality or None,
        ),
    )


class BookingFlowController:
    """Reservation wizard for one browsing session.

    The controller resumes the session's draft when there is one for the
    same mode and otherwise starts from the constructor inputs. Every change
    to the draft or the current step recomputes pricing, then persists the
    draft, then the summary.
    """

    def __init__(
        self,
        session_id: str,
        mode: BookingMode | str,
        drafts: DraftStore,
        *,
        initial_check_in: date,
        initial_check_out: date,
        initial_guests: int = DEFAULT_GUESTS,
        package_id: str | None = None,
        room_id: str | None = None,
        room_name: str | None = None,
        query_params: Mapping[str, str] | None = None,
        catalog: CatalogService | None = None,
        lifecycle: BookingLifecycleManager | None = None,
        payments: PaymentService | None = None,
        today: date | None = None,
    ):
        self.session_id = session_id
        self.mode = BookingMode(mode)
        self._drafts = drafts
        self._catalog = catalog
        self._lifecycle = lifecycle
        self._payments = payments
        self._today = today

        self.loading_package = False
        self.package_error: str | None = None
        self.submit_error: str | None = None

        draft = drafts.get_draft(session_id)
        if draft is not None and draft.mode != self.mode:
            logger.info("Discarding %s draft for session %s", draft.mode, session_id)
            drafts.discard(session_id)
            draft = None

        if draft is not None:
            self.package_id = draft.package_id or package_id
            self.room_id = draft.room_id or room_id
            self.room_name = draft.room_name or room_name
            self.booking_id = draft.booking_id
            self._data = draft.data
            keys = [s.key for s in self.active_steps]
            self._step = draft.step if draft.step in keys else self._first_step()
            self.resumed = True
        else:
            self.package_id = package_id
            self.room_id = room_id
            self.room_name = room_name
            self.booking_id = None
            self._data = BookingData(
                check_in=initial_check_in,
                check_out=initial_check_out,
                guests=initial_guests,
            )
            if self.mode not in (BookingMode.package, BookingMode.room_select):
                self._apply_query_params(query_params or {})
            self._step = self._first_step()
            self.resumed = False

        self._summary = self._commit()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def today(self) -> date:
        return self._today or date.today()

    @property
    def current_step(self) -> BookingStep:
        return self._step

    @property
    def data(self) -> BookingData:
        return self._data.model_copy(deep=True)

    @property
    def active_steps(self) -> list[StepConfig]:
        if self.loading_package:
            return []
        return active_steps(self.mode, self._data.package_data)

    @property
    def step_index(self) -> int:
        return step_index(self.active_steps, self._step)

    @property
    def progress(self) -> float:
        return progress(self.active_steps, self._step)

    @property
    def nights(self) -> int:
        return nights_between(self._data.check_in, self._data.check_out)

    @property
    def summary(self) -> PricingSummary:
        return self._summary

    @property
    def can_advance(self) -> bool:
        return can_advance(self._step, self._data)

    def _first_step(self) -> BookingStep:
        steps = active_steps(self.mode, self._data.package_data)
        return steps[0].key if steps else BookingStep.search

    def _apply_query_params(self, params: Mapping[str, str]) -> None:
        check_in = _parse_query_date(params.get("checkIn", ""))
        check_out = _parse_query_date(params.get("checkOut", ""))
        if not (check_in and check_out):
            return
        guests = params.get("guests", "")
        self._data.check_in = check_in
        self._data.check_out = check_out
        self._data.guests = int(guests) if guests.isdigit() and int(guests) > 0 else DEFAULT_GUESTS

    def _commit(self) -> PricingSummary:
        summary = compute_summary(
            self._data.rooms, self._data.extras, self._data.check_in, self._data.check_out
        )
        self._summary = summary
        if self._step == BookingStep.confirmation:
            return summary

        self._drafts.set_draft(
            self.session_id,
            BookingDraft(
                step=self._step,
                mode=self.mode,
                package_id=self.package_id,
                room_id=self.room_id,
                room_name=self.room_name,
                booking_id=self.booking_id,
                data=self._data,
            ),
        )
        self._drafts.set_summary(self.session_id, summary)
        return summary

    def snapshot(self) -> FlowState:
        return FlowState(
            session_id=self.session_id,
            mode=self.mode,
            current_step=self._step,
            active_steps=self.active_steps,
            step_index=self.step_index,
            progress=self.progress,
            nights=self.nights,
            summary=self._summary,
            data=self.data,
            can_advance=self.can_advance,
            loading_package=self.loading_package,
            package_error=self.package_error,
            booking_id=self.booking_id,
            submit_error=self.submit_error,
        )

    # ------------------------------------------------------------------
    # Package loading
    # ------------------------------------------------------------------

    async def load_package(self) -> bool:
        """Fetch the package and seed the draft from it.

        Failure is recoverable: the flag clears, the error is kept for the UI
        and the wizard stays where it was.
        """
        if self.mode != BookingMode.package or not self.package_id:
            return False

        self.loading_package = True
        self.package_error = None
        try:
            if self._catalog is None:
                raise CatalogError("Catalog not configured")
            package = await self._catalog.get_package(self.package_id)
        except (CatalogError, RateLimitError) as exc:
            logger.warning("Failed to load package %s: %s", self.package_id, exc)
            self.package_error = str(exc)
            return False
        finally:
            self.loading_package = False

        self._data.check_in = self.today
        self._data.check_out = self.today + timedelta(days=package.nights)
        if package.is_for_two:
            self._data.guests = 2
        self._data.package_data = PackageRef(
            id=package.id,
            name=package.name,
            nights=package.nights,
            includes=package.includes,
            room_type=package.room_type,
        )
        self._step = self._first_step()
        self._commit()
        return True

    async def retry_package(self) -> bool:
        return await self.load_package()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def go_next(self) -> BookingStep:
        self._step = next_step(self.active_steps, self._step)
        self._commit()
        return self._step

    def go_back(self) -> BookingStep:
        self._step = previous_step(self.active_steps, self._step)
        self._commit()
        return self._step

    def set_step(self, step: BookingStep | str) -> BookingStep:
        """Jump to an active step. Confirmation is only reached by submitting."""
        step = BookingStep(step)
        if step == BookingStep.confirmation:
            raise ValueError("Confirmation is reached by submitting the booking")
        if step not in [s.key for s in self.active_steps]:
            raise ValueError(f"Step '{step}' is not part of the {self.mode} flow")
        self._step = step
        self._commit()
        return self._step

    # ------------------------------------------------------------------
    # Step completion handlers
    # ------------------------------------------------------------------

    def update(self, change: Callable[[BookingData], BookingData]) -> BookingData:
        self._data = change(self._data.model_copy(deep=True))
        self._commit()
        return self.data

    def complete_search(self, check_in: date, check_out: date, guests: int) -> BookingStep:
        self._data.check_in = check_in
        self._data.check_out = check_out
        self._data.guests = guests
        return self.go_next()

    def complete_rooms(self, rooms: list[RoomSelection]) -> BookingStep:
        self._data.rooms = list(rooms)
        return self.go_next()

    def complete_service_select(
        self, extras: list[ExtraSelection], service_dates: dict[str, str]
    ) -> BookingStep:
        self._data.service_dates = dict(service_dates)
        self._data.extras = [
            e.model_copy(update={"date": e.date or service_dates.get(e.service_id)})
            for e in extras
        ]
        return self.go_next()

    def complete_extras(self, extras: list[ExtraSelection]) -> BookingStep:
        self._data.extras = list(extras)
        return self.go_next()

    def complete_details(self, guest_info: GuestInfo) -> BookingStep:
        self._data.guest_info = guest_info
        return self.go_next()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, card: CardDetails | None = None) -> str | None:
        """Create the booking (and charge the card when given).

        Returns the booking id and moves to confirmation on success. On
        failure the error is kept in ``submit_error`` and the wizard stays on
        the payment step with its draft intact; nothing is retried.
        """
        self.submit_error = None
        if self._step != BookingStep.payment:
            self.submit_error = "Booking can only be submitted from the payment step"
            return None
        if self._lifecycle is None:
            self.submit_error = "Booking service not configured"
            return None
        if self._data.guest_info is None:
            self.submit_error = "Guest details are required before payment"
            return None

        try:
            if self.booking_id is None:
                result = await self._lifecycle.create(build_booking_input(self._data))
                self.booking_id = result.booking_id
                self._commit()
                total = result.total_amount
            else:
                total = (await self._lifecycle.get(self.booking_id)).total_amount

            if card is not None:
                if self._payments is None:
                    raise PaymentError("Payment service not configured")
                guest = self._data.guest_info
                outcome = await self._payments.charge(
                    order_id=self.booking_id,
                    amount=total,
                    description=f"Booking {self.booking_id[:8].upper()}",
                    customer_email=guest.email,
                    customer_name=guest.full_name,
                    card=card,
                )
                if not outcome.success:
                    self.submit_error = outcome.error or "Payment declined"
                    return None
                await self._lifecycle.confirm_payment(self.booking_id)
        except _SUBMIT_ERRORS as exc:
            logger.warning("Booking submission failed for session %s: %s", self.session_id, exc)
            self.submit_error = getattr(exc, "message", None) or str(exc)
            self._commit()
            return None

        booking_id = self.booking_id
        self._step = BookingStep.confirmation
        self._drafts.discard(self.session_id)
        logger.info("Session %s completed booking %s", self.session_id, booking_id)
        return booking_id
