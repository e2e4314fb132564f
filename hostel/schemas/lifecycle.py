from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from hostel.schemas.booking import parse_iso_date


class BookingStatus(StrEnum):
    pending_payment = "pending_payment"
    confirmed = "confirmed"
    checked_in = "checked_in"
    checked_out = "checked_out"
    cancelled = "cancelled"
    no_show = "no_show"


class PaymentStatus(StrEnum):
    pending = "pending"
    partial = "partial"
    paid = "paid"
    refunded = "refunded"


class BookingSource(StrEnum):
    direct = "direct"
    walk_in = "walk_in"
    phone = "phone"
    ota = "ota"


class Guest(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    phone: str | None = None
    nationality: str | None = None
    loyalty_points: int = 0


class Booking(BaseModel):
    id: str
    user_id: str | None = None
    check_in: date
    check_out: date
    guests_count: int
    total_amount: float
    paid_amount: float = 0.0
    special_requests: str | None = None
    source: BookingSource = BookingSource.direct
    status: BookingStatus
    payment_status: PaymentStatus = PaymentStatus.pending
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def keep_calendar_date(cls, value: object) -> object:
        return parse_iso_date(value)

    @field_validator("paid_amount", mode="before")
    @classmethod
    def null_paid_is_zero(cls, value: object) -> object:
        return 0.0 if value is None else value


class RoomAssignment(BaseModel):
    booking_id: str
    room_id: str
    bed_id: str | None = None
    price_per_night: float


class ServiceAssignment(BaseModel):
    booking_id: str
    service_id: str
    quantity: int
    price_at_booking: float
    scheduled_date: str | None = None


class CheckInRecord(BaseModel):
    booking_id: str
    terms_accepted: bool = False
    passport_photo_url: str | None = None
    signature_url: str | None = None
    completed_at: datetime | None = None


class LoyaltyTransaction(BaseModel):
    user_id: str
    points: int
    description: str
    booking_id: str | None = None


class RoomLine(BaseModel):
    room_id: str
    bed_id: str | None = None
    price_per_night: float = Field(ge=0)


class ServiceLine(BaseModel):
    service_id: str
    quantity: int = Field(default=1, ge=1)
    price_at_booking: float = Field(ge=0)
    scheduled_date: str | None = None


class GuestContact(BaseModel):
    email: str
    full_name: str
    phone: str | None = None
    nationality: str | None = None


class CreateBookingInput(BaseModel):
    check_in: date
    check_out: date
    guests_count: int = Field(ge=1)
    rooms: list[RoomLine]
    services: list[ServiceLine] = []
    special_requests: str | None = None
    source: BookingSource = BookingSource.direct
    payment_status: PaymentStatus = PaymentStatus.pending
    guest_info: GuestContact

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def keep_calendar_date(cls, value: object) -> object:
        return parse_iso_date(value)


class CreateBookingResult(BaseModel):
    booking_id: str
    total_amount: float
    status: BookingStatus
    services_attached: bool = True


class BookingDetails(BaseModel):
    booking: Booking
    guest: Guest | None = None
    rooms: list[RoomAssignment] = []
    services: list[ServiceAssignment] = []
    check_in_record: CheckInRecord | None = None


class CancellationResult(BaseModel):
    booking: Booking
    refund_eligible: bool
    refund_processed: bool
    days_until_check_in: int
    message: str


class RefundPreview(BaseModel):
    eligible: bool
    days_until_check_in: int


class CheckOutResult(BaseModel):
    booking: Booking
    points_awarded: int


class PaymentRecordResult(BaseModel):
    booking_id: str
    paid_amount: float
    payment_status: PaymentStatus


class ConfirmPaymentResult(BaseModel):
    booking: Booking
    already_confirmed: bool


class ExpireResult(BaseModel):
    expired_count: int
    expired_ids: list[str] = []


class TodayMovements(BaseModel):
    check_ins: list[Booking] = []
    check_outs: list[Booking] = []
