"""Pure pricing functions for the booking flow.

No I/O, no side effects. Recomputed on every draft mutation; inputs are a
handful of line items so nothing is cached.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Literal

from hostel.schemas.booking import ExtraSelection, PricingSummary, RoomSelection

Season = Literal["high", "mid", "low"]

TAX_RATE = 0.13  # Costa Rica IVA

SEASON_MULTIPLIERS: dict[str, float] = {
    "high": 1.3,
    "mid": 1.0,
    "low": 0.8,
}

# (min days before check-in, discount)
LEAD_TIME_DISCOUNTS: list[tuple[int, float]] = [
    (60, 0.0),   # rack rate
    (10, 0.10),  # competitive
    (0, 0.20),   # last minute
]


def _money(value: float) -> float:
    return round(value, 2)


def nights_between(check_in: date, check_out: date) -> int:
    """Whole-day difference. Zero or negative for same-day/inverted ranges."""
    return (check_out - check_in).days


def get_season(day: date) -> Season:
    """High = Dec 27 - Apr 30, low = Sep 1 - Oct 31, mid otherwise."""
    month, dom = day.month, day.day
    if (month == 12 and dom >= 27) or month in (1, 2, 3, 4):
        return "high"
    if month in (9, 10):
        return "low"
    return "mid"


def season_multiplier(season: str) -> float:
    return SEASON_MULTIPLIERS.get(season, SEASON_MULTIPLIERS["mid"])


def lead_time_discount(check_in: date, today: date) -> float:
    days = (check_in - today).days
    for min_days, discount in LEAD_TIME_DISCOUNTS:
        if days >= min_days:
            return discount
    return LEAD_TIME_DISCOUNTS[-1][1]


def nightly_rate(prices_by_season: Mapping[str, float], check_in: date) -> float | None:
    """Look up the nightly rate for the season the stay starts in.

    Falls back to the mid rate when the season has no price row, and returns
    None when neither is available.
    """
    season = get_season(check_in)
    if season in prices_by_season:
        return prices_by_season[season]
    return prices_by_season.get("mid")


def rooms_total(rooms: Iterable[RoomSelection], nights: int) -> float:
    if nights <= 0:
        return 0.0
    return sum(r.price_per_night * r.quantity * nights for r in rooms)


def extras_total(extras: Iterable[ExtraSelection]) -> float:
    return sum(e.price * e.quantity for e in extras)


def apply_tax(subtotal: float) -> tuple[float, float]:
    """Return (tax, total) for a subtotal, rounded to cents."""
    tax = _money(subtotal * TAX_RATE)
    return tax, _money(subtotal + tax)


def booking_totals(
    room_rates: Iterable[float],
    service_lines: Iterable[tuple[float, int]],
    check_in: date,
    check_out: date,
) -> PricingSummary:
    """Server-side totals for a booking being created.

    Each room assignment row is one bed or one room, so rooms are priced as
    rate x nights per row. Service lines are (price_at_booking, quantity).
    """
    nights = nights_between(check_in, check_out)
    room_sum = _money(sum(rate * nights for rate in room_rates)) if nights > 0 else 0.0
    service_sum = _money(sum(price * qty for price, qty in service_lines))
    subtotal = _money(room_sum + service_sum)
    tax, total = apply_tax(subtotal)
    return PricingSummary(
        nights=nights,
        rooms_total=room_sum,
        extras_total=service_sum,
        subtotal=subtotal,
        tax=tax,
        total=total,
    )


def compute_summary(
    rooms: Iterable[RoomSelection],
    extras: Iterable[ExtraSelection],
    check_in: date,
    check_out: date,
) -> PricingSummary:
    """Derive the pricing summary for a draft.

    Never raises: a non-positive night count prices rooms at zero and it is
    up to the caller to treat that as "not ready to price".
    """
    nights = nights_between(check_in, check_out)
    room_sum = _money(rooms_total(rooms, nights))
    extra_sum = _money(extras_total(extras))
    subtotal = _money(room_sum + extra_sum)
    tax, total = apply_tax(subtotal)
    return PricingSummary(
        nights=nights,
        rooms_total=room_sum,
        extras_total=extra_sum,
        subtotal=subtotal,
        tax=tax,
        total=total,
    )
