"""Read-only aggregates over bookings for the admin dashboard.

Pure functions over lists of Booking models. No I/O, no side effects.
"""

from collections import Counter
from datetime import date

from hostel.schemas.lifecycle import Booking, BookingStatus
from hostel.schemas.responses import RevenueSummary

DEFAULT_BED_CAPACITY = 18

# Bookings in these states never bring in money
_NON_REVENUE = {BookingStatus.cancelled, BookingStatus.no_show}

# Bookings in these states hold beds on the nights they cover
_OCCUPYING = {
    BookingStatus.pending_payment,
    BookingStatus.confirmed,
    BookingStatus.checked_in,
    BookingStatus.checked_out,
}


def revenue_summary(bookings: list[Booking]) -> RevenueSummary:
    counted = [b for b in bookings if b.status not in _NON_REVENUE]
    total = round(sum(b.total_amount for b in counted), 2)
    paid = round(sum(b.paid_amount for b in counted), 2)
    return RevenueSummary(
        bookings=len(bookings),
        total_revenue=total,
        paid=paid,
        outstanding=round(max(total - paid, 0.0), 2),
        by_status=dict(Counter(str(b.status) for b in bookings)),
    )


def occupied_beds(bookings: list[Booking], day: date) -> int:
    """Guests staying the night of *day* (check-in inclusive, check-out exclusive)."""
    return sum(
        b.guests_count
        for b in bookings
        if b.status in _OCCUPYING and b.check_in <= day < b.check_out
    )


def occupancy_rate(
    bookings: list[Booking], day: date, capacity: int = DEFAULT_BED_CAPACITY
) -> float:
    if capacity <= 0:
        return 0.0
    return round(min(occupied_beds(bookings, day) / capacity, 1.0) * 100, 1)
