from __future__ import annotations

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class BookingMode(StrEnum):
    accommodation = "accommodation"
    room_select = "room-select"
    services_only = "services-only"
    package = "package"


class BookingStep(StrEnum):
    search = "search"
    rooms = "rooms"
    service_select = "service-select"
    package_preview = "package-preview"
    extras = "extras"
    details = "details"
    payment = "payment"
    confirmation = "confirmation"


class SellUnit(StrEnum):
    bed = "bed"
    room = "room"


def parse_iso_date(value: object) -> object:
    """Keep the calendar date of an ISO string, ignoring any time/zone part.

    "2026-01-05" and "2026-01-05T06:00:00.000Z" both become 2026-01-05.
    """
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


class RoomSelection(BaseModel):
    room_id: str
    room_name: str
    quantity: int = Field(default=1, ge=1)
    price_per_night: float = Field(ge=0)
    sell_unit: SellUnit = SellUnit.bed
    bed_id: str | None = None


class ExtraSelection(BaseModel):
    service_id: str
    service_name: str
    quantity: int = Field(default=1, ge=1)
    price: float = Field(ge=0)
    date: str | None = None  # ISO date the service is scheduled for


class GuestInfo(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    nationality: str = ""
    special_requests: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PackageRef(BaseModel):
    id: str
    name: str
    nights: int | None = None
    includes: list[str] = []
    room_type: str | None = None


class BookingData(BaseModel):
    check_in: date
    check_out: date
    guests: int = Field(default=2, ge=1)
    rooms: list[RoomSelection] = []
    extras: list[ExtraSelection] = []
    service_dates: dict[str, str] = {}
    guest_info: GuestInfo | None = None
    package_data: PackageRef | None = None

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def keep_calendar_date(cls, value: object) -> object:
        return parse_iso_date(value)


class BookingDraft(BaseModel):
    step: BookingStep
    mode: BookingMode
    package_id: str | None = None
    room_id: str | None = None
    room_name: str | None = None
    booking_id: str | None = None  # set once submission has created the booking
    data: BookingData


class PricingSummary(BaseModel):
    nights: int = 0
    rooms_total: float = 0.0
    extras_total: float = 0.0
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0


class StepConfig(BaseModel):
    key: BookingStep
    label: str
