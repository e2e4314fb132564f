from datetime import date

from pydantic import BaseModel, field_validator

from hostel.schemas.booking import SellUnit, parse_iso_date


class SurfPackage(BaseModel):
    id: str
    name: str
    tagline: str | None = None
    description: str | None = None
    nights: int
    surf_lessons: int = 0
    room_type: str | None = None  # "dorm" | "private" | None when no stay included
    includes: list[str] = []
    price: float = 0.0
    original_price: float | None = None
    is_popular: bool = False
    is_for_two: bool = False
    is_active: bool = True


class Room(BaseModel):
    id: str
    name: str
    type: str  # "dorm" | "private" | "family" | "female"
    capacity: int
    sell_unit: SellUnit = SellUnit.bed
    is_active: bool = True


class RoomBlock(BaseModel):
    room_id: str
    bed_id: str | None = None  # None blocks the whole room
    start_date: date
    end_date: date
    reason: str | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def keep_calendar_date(cls, value: object) -> object:
        return parse_iso_date(value)


class RoomAvailability(BaseModel):
    room_id: str
    total_beds: int
    booked_beds: int
    blocked_beds: int
    available_beds: int
    is_blocked: bool
    is_fully_booked: bool


class PricedRoom(BaseModel):
    room: Room
    season: str
    price_per_night: float
    availability: RoomAvailability | None = None


class Service(BaseModel):
    id: str
    name: str
    price: float
    category: str | None = None
    is_active: bool = True


class SeasonPricing(BaseModel):
    room_id: str
    season: str  # "high" | "mid" | "low"
    base_price: float
