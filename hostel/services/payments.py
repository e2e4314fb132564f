import logging

import httpx

from hostel.exceptions.custom import PaymentError, RateLimitError
from hostel.schemas.payments import CardDetails, PaymentResult

logger = logging.getLogger(__name__)

PROCESS_PATH = "/api/v1/payment/process"
CURRENCY = "USD"


class PaymentService:
    """Card payments through GreenPay, keyed by booking id as the order id."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        merchant_id: str,
        terminal_id: str,
        secret: str,
    ):
        self._client = client
        self._url = base_url.rstrip("/") + PROCESS_PATH
        self._merchant_id = merchant_id
        self._terminal_id = terminal_id
        self._headers = {
            "Authorization": f"Bearer {secret}",
            "Content-Type": "application/json",
        }

    async def charge(
        self,
        order_id: str,
        amount: float,
        description: str,
        customer_email: str,
        customer_name: str,
        card: CardDetails,
    ) -> PaymentResult:
        payload = {
            "merchant_id": self._merchant_id,
            "terminal_id": self._terminal_id,
            "amount": f"{amount:.2f}",
            "currency": CURRENCY,
            "order_id": order_id,
            "description": description,
            "card_number": card.card_number,
            "card_holder": card.card_holder,
            "expiration_date": card.expiration_date,
            "cvv": card.cvv,
            "customer_email": customer_email,
            "customer_name": customer_name,
        }

        logger.info("Charging %.2f %s for order %s", amount, CURRENCY, order_id)
        try:
            resp = await self._client.post(self._url, json=payload, headers=self._headers)
        except httpx.HTTPError as exc:
            logger.exception("GreenPay request failed for order %s", order_id)
            raise PaymentError(f"Payment gateway unreachable: {exc}") from exc

        if resp.status_code == 429:
            raise RateLimitError("GreenPay")
        if resp.status_code >= 400:
            raise PaymentError(resp.text, status_code=resp.status_code)

        data = resp.json()
        if data.get("status") == 200 or data.get("response_code") == "00":
            transaction_id = (
                data.get("transaction_id")
                or (data.get("data") or {}).get("transaction_id")
                or order_id
            )
            logger.info("Payment approved for order %s: %s", order_id, transaction_id)
            return PaymentResult(success=True, transaction_id=transaction_id)

        error = data.get("message") or data.get("response_message") or "Payment declined"
        logger.warning("Payment declined for order %s: %s", order_id, error)
        return PaymentResult(success=False, error=error)
