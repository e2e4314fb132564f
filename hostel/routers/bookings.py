import logging
from datetime import date

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from hostel.dependencies import LifecycleDep
from hostel.schemas.lifecycle import (
    Booking,
    BookingDetails,
    BookingStatus,
    CancellationResult,
    CheckOutResult,
    ConfirmPaymentResult,
    CreateBookingInput,
    CreateBookingResult,
    PaymentRecordResult,
    RefundPreview,
    TodayMovements,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


class TransitionRequest(BaseModel):
    status: BookingStatus
    expected_status: BookingStatus | None = None


class ExpectedStatusRequest(BaseModel):
    expected_status: BookingStatus | None = None


class CancelRequest(BaseModel):
    today: date | None = None


class PaymentRequest(BaseModel):
    amount: float = Field(gt=0)


@router.post("", response_model=CreateBookingResult, status_code=201)
async def create_booking(
    manager: LifecycleDep, request: CreateBookingInput
) -> CreateBookingResult:
    if not request.rooms and not request.services:
        raise HTTPException(status_code=422, detail="A booking needs rooms or services")
    return await manager.create(request)


@router.get("", response_model=list[Booking])
async def list_bookings(
    manager: LifecycleDep,
    status: BookingStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[Booking]:
    return await manager.list_bookings(status, start_date, end_date)


@router.get("/today", response_model=TodayMovements)
async def today_movements(manager: LifecycleDep, day: date | None = None) -> TodayMovements:
    return await manager.today_movements(day)


@router.get("/{booking_id}", response_model=Booking)
async def get_booking(booking_id: str, manager: LifecycleDep) -> Booking:
    return await manager.get(booking_id)


@router.get("/{booking_id}/details", response_model=BookingDetails)
async def get_booking_details(booking_id: str, manager: LifecycleDep) -> BookingDetails:
    return await manager.get_details(booking_id)


@router.post("/{booking_id}/status", response_model=Booking)
async def transition_booking(
    booking_id: str, manager: LifecycleDep, request: TransitionRequest
) -> Booking:
    return await manager.transition(booking_id, request.status, request.expected_status)


@router.post("/{booking_id}/check-in", response_model=Booking)
async def check_in(
    booking_id: str,
    manager: LifecycleDep,
    request: ExpectedStatusRequest | None = None,
) -> Booking:
    expected = request.expected_status if request else None
    return await manager.complete_check_in(booking_id, expected)


@router.post("/{booking_id}/check-out", response_model=CheckOutResult)
async def check_out(
    booking_id: str,
    manager: LifecycleDep,
    request: ExpectedStatusRequest | None = None,
) -> CheckOutResult:
    expected = request.expected_status if request else None
    return await manager.check_out(booking_id, expected)


@router.post("/{booking_id}/no-show", response_model=Booking)
async def no_show(
    booking_id: str,
    manager: LifecycleDep,
    request: ExpectedStatusRequest | None = None,
) -> Booking:
    expected = request.expected_status if request else None
    return await manager.mark_no_show(booking_id, expected)


@router.get("/{booking_id}/refund-preview", response_model=RefundPreview)
async def refund_preview(
    booking_id: str, manager: LifecycleDep, today: date | None = None
) -> RefundPreview:
    booking = await manager.get(booking_id)
    return manager.refund_preview(booking.check_in, today)


@router.post("/{booking_id}/cancel", response_model=CancellationResult)
async def cancel_booking(
    booking_id: str,
    manager: LifecycleDep,
    request: CancelRequest | None = None,
) -> CancellationResult:
    return await manager.cancel(booking_id, request.today if request else None)


@router.post("/{booking_id}/payments", response_model=PaymentRecordResult)
async def record_payment(
    booking_id: str, manager: LifecycleDep, request: PaymentRequest
) -> PaymentRecordResult:
    return await manager.record_payment(booking_id, request.amount)


@router.post("/{booking_id}/confirm-payment", response_model=ConfirmPaymentResult)
async def confirm_payment(booking_id: str, manager: LifecycleDep) -> ConfirmPaymentResult:
    return await manager.confirm_payment(booking_id)
