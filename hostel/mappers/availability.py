"""Bed availability per room for a stay.

Pure functions: the catalog service fetches the overlapping booking rows and
room blocks, this module does the counting.
"""

from hostel.schemas.booking import SellUnit
from hostel.schemas.catalog import Room, RoomAvailability, RoomBlock
from hostel.schemas.lifecycle import BookingStatus

# Bookings in these states hold their beds
HOLDING_STATUSES = [
    BookingStatus.pending_payment,
    BookingStatus.confirmed,
    BookingStatus.checked_in,
    BookingStatus.checked_out,
]


def _booked_beds(room: Room, assignments: list[dict]) -> int:
    if not assignments:
        return 0
    if room.sell_unit == SellUnit.room:
        return room.capacity
    # One row per bed; rows naming the same bed count once
    named = {a["bed_id"] for a in assignments if a.get("bed_id")}
    unnamed = sum(1 for a in assignments if not a.get("bed_id"))
    return len(named) + unnamed


def room_availability(
    room: Room, assignments: list[dict], blocks: list[RoomBlock]
) -> RoomAvailability:
    total = room.capacity
    is_blocked = any(b.bed_id is None for b in blocks)
    blocked = total if is_blocked else len({b.bed_id for b in blocks})
    booked = min(_booked_beds(room, assignments), total)
    available = max(total - booked - blocked, 0)

    return RoomAvailability(
        room_id=room.id,
        total_beds=total,
        booked_beds=booked,
        blocked_beds=min(blocked, total),
        available_beds=available,
        is_blocked=is_blocked,
        is_fully_booked=available == 0,
    )
