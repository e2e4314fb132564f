import logging

import httpx

from hostel.exceptions.custom import NotificationError, RateLimitError
from hostel.mappers.emails import (
    build_cancellation_html,
    build_cancellation_subject,
    build_confirmation_html,
    build_confirmation_subject,
    build_staff_alert_html,
    booking_reference,
)
from hostel.schemas.lifecycle import Booking, CancellationResult

logger = logging.getLogger(__name__)

EMAILS_URL = "https://api.resend.com/emails"


class NotificationService:
    """Transactional email through Resend. Best-effort: public methods never raise."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        from_email: str,
        site_url: str,
        staff_email: str = "",
    ):
        self._client = client
        self._api_key = api_key
        self._from = from_email
        self._site_url = site_url
        self._staff_email = staff_email

    async def _send(self, to: str, subject: str, html: str) -> None:
        resp = await self._client.post(
            EMAILS_URL,
            json={"from": self._from, "to": [to], "subject": subject, "html": html},
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        if resp.status_code == 429:
            raise RateLimitError("Resend")
        if resp.status_code >= 400:
            raise NotificationError(resp.text, status_code=resp.status_code)
        logger.info("Sent email '%s' to %s", subject, to)

    async def send(self, to: str, subject: str, html: str) -> bool:
        if not self._api_key:
            logger.warning("RESEND_API_KEY not configured, skipping email '%s'", subject)
            return False
        try:
            await self._send(to, subject, html)
        except (NotificationError, RateLimitError, httpx.HTTPError):
            logger.exception("Failed to send email '%s' to %s", subject, to)
            return False
        return True

    async def send_booking_confirmation(
        self,
        booking: Booking,
        to: str,
        guest_name: str,
        room_names: list[str] | None = None,
        service_names: list[str] | None = None,
    ) -> bool:
        html = build_confirmation_html(
            booking, guest_name, room_names or [], service_names or [], self._site_url
        )
        sent = await self.send(to, build_confirmation_subject(booking), html)
        if self._staff_email:
            await self.send(
                self._staff_email,
                f"New booking #{booking_reference(booking.id)}",
                build_staff_alert_html(booking, guest_name, to),
            )
        return sent

    async def send_cancellation(
        self, result: CancellationResult, to: str, guest_name: str
    ) -> bool:
        return await self.send(
            to,
            build_cancellation_subject(result.booking),
            build_cancellation_html(result, guest_name),
        )
