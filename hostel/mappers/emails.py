from html import escape

from hostel.schemas.lifecycle import Booking, CancellationResult

HOTEL_NAME = "Mai Ke Kai Surf House"


def booking_reference(booking_id: str) -> str:
    return booking_id[:8].upper()


def _money(amount: float) -> str:
    return f"${amount:,.2f} USD"


def build_confirmation_subject(booking: Booking) -> str:
    return f"{HOTEL_NAME} - Booking confirmed #{booking_reference(booking.id)}"


def build_confirmation_html(
    booking: Booking,
    guest_name: str,
    room_names: list[str],
    service_names: list[str],
    site_url: str,
) -> str:
    rows = [
        f"<li><strong>Check-in:</strong> {booking.check_in.isoformat()}</li>",
        f"<li><strong>Check-out:</strong> {booking.check_out.isoformat()}</li>",
        f"<li><strong>Guests:</strong> {booking.guests_count}</li>",
    ]
    if room_names:
        rows.append(f"<li><strong>Rooms:</strong> {escape(', '.join(room_names))}</li>")
    if service_names:
        rows.append(f"<li><strong>Extras:</strong> {escape(', '.join(service_names))}</li>")
    rows.append(f"<li><strong>Total:</strong> {_money(booking.total_amount)}</li>")
    rows.append(f"<li><strong>Payment:</strong> {escape(booking.payment_status)}</li>")
    if booking.special_requests:
        rows.append(
            f"<li><strong>Special requests:</strong> {escape(booking.special_requests)}</li>"
        )

    check_in_url = escape(f"{site_url.rstrip('/')}/check-in/{booking.id}")
    return (
        f"<h2>Hi {escape(guest_name)},</h2>"
        f"<p>Your booking <strong>#{booking_reference(booking.id)}</strong> "
        f"at {HOTEL_NAME} is registered.</p>"
        f"<ul>{''.join(rows)}</ul>"
        f'<p>Complete your online check-in here: <a href="{check_in_url}">{check_in_url}</a></p>'
    )


def build_staff_alert_html(booking: Booking, guest_name: str, guest_email: str) -> str:
    return (
        f"<h3>New booking #{booking_reference(booking.id)}</h3>"
        "<ul>"
        f"<li><strong>Guest:</strong> {escape(guest_name)} ({escape(guest_email)})</li>"
        f"<li><strong>Dates:</strong> {booking.check_in.isoformat()} &rarr; "
        f"{booking.check_out.isoformat()}</li>"
        f"<li><strong>Guests:</strong> {booking.guests_count}</li>"
        f"<li><strong>Total:</strong> {_money(booking.total_amount)}</li>"
        f"<li><strong>Status:</strong> {escape(booking.status)}</li>"
        "</ul>"
    )


def build_cancellation_subject(booking: Booking) -> str:
    return f"{HOTEL_NAME} - Booking cancelled #{booking_reference(booking.id)}"


def build_cancellation_html(result: CancellationResult, guest_name: str) -> str:
    booking = result.booking
    refund = (
        "<p>You are eligible for a refund. Our team will contact you to process it.</p>"
        if result.refund_processed
        else ""
    )
    return (
        f"<h2>Hi {escape(guest_name)},</h2>"
        f"<p>Your booking <strong>#{booking_reference(booking.id)}</strong> "
        f"({booking.check_in.isoformat()} &rarr; {booking.check_out.isoformat()}) "
        "has been cancelled.</p>"
        f"<p>{escape(result.message)}</p>"
        f"{refund}"
    )
