"""Booking lifecycle policies: cancellation refunds and loyalty accrual.

Pure functions, dates are passed in so callers control "today".
"""

import math
from datetime import date

CANCELLATION_DAYS_THRESHOLD = 5

REFUND_NOTE = "[REFUND REQUIRED] Manual refund needed - contact guest directly"


def days_until_check_in(check_in: date, today: date) -> int:
    """Whole days from *today* to *check_in*, both taken at midnight."""
    return (check_in - today).days


def is_refund_eligible(days_until: int) -> bool:
    return days_until >= CANCELLATION_DAYS_THRESHOLD


def cancellation_message(refund_eligible: bool, paid_amount: float, days_until: int) -> str:
    if refund_eligible and paid_amount > 0:
        return (
            f"Booking cancelled. Manual refund required ({days_until} days before "
            "check-in). Process refund directly with the guest."
        )
    if paid_amount > 0:
        return (
            "Booking cancelled WITHOUT refund. Policy: cancellations less than "
            f"{CANCELLATION_DAYS_THRESHOLD} days before check-in are non-refundable "
            f"({days_until} days before check-in)."
        )
    return "Booking cancelled."


def append_refund_note(special_requests: str | None) -> str:
    return (special_requests or "") + "\n" + REFUND_NOTE


def loyalty_points_for(total_amount: float) -> int:
    """One point per whole dollar spent (floor, never rounded up)."""
    return max(0, math.floor(total_amount))


def loyalty_description(booking_id: str) -> str:
    return f"Completed stay - Booking #{booking_id[:8]}"


def payment_status_for(paid_amount: float, total_amount: float) -> str:
    if paid_amount <= 0:
        return "pending"
    return "paid" if paid_amount >= total_amount else "partial"
