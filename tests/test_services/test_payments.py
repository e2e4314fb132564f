import json

import httpx
import pytest
import respx
from httpx import Response

from hostel.exceptions.custom import PaymentError, RateLimitError
from hostel.schemas.payments import CardDetails
from hostel.services.payments import PROCESS_PATH, PaymentService

BASE_URL = "https://sandbox-merchant.greenpay.me"
PROCESS_URL = BASE_URL + PROCESS_PATH

CARD = CardDetails(
    card_number="4111111111111111", card_holder="ANA MORA", expiration_date="12/28", cvv="123"
)


async def _charge(client):
    service = PaymentService(client, BASE_URL, "merchant-1", "terminal-1", "secret")
    return await service.charge(
        order_id="b1",
        amount=214.7,
        description="Booking B1",
        customer_email="ana@example.com",
        customer_name="Ana Mora",
        card=CARD,
    )


@respx.mock
@pytest.mark.asyncio
async def test_charge_success_by_status():
    route = respx.post(PROCESS_URL).mock(
        return_value=Response(200, json={"status": 200, "transaction_id": "tx-9"})
    )

    async with httpx.AsyncClient() as client:
        result = await _charge(client)

    assert result.success is True
    assert result.transaction_id == "tx-9"
    payload = json.loads(route.calls.last.request.content)
    assert payload["amount"] == "214.70"
    assert payload["order_id"] == "b1"
    assert payload["merchant_id"] == "merchant-1"
    assert route.calls.last.request.headers["authorization"] == "Bearer secret"


@respx.mock
@pytest.mark.asyncio
async def test_charge_success_by_response_code():
    respx.post(PROCESS_URL).mock(
        return_value=Response(200, json={"response_code": "00", "data": {"transaction_id": "tx-2"}})
    )

    async with httpx.AsyncClient() as client:
        result = await _charge(client)

    assert result.success is True
    assert result.transaction_id == "tx-2"


@respx.mock
@pytest.mark.asyncio
async def test_charge_declined():
    respx.post(PROCESS_URL).mock(
        return_value=Response(200, json={"status": 402, "response_message": "Insufficient funds"})
    )

    async with httpx.AsyncClient() as client:
        result = await _charge(client)

    assert result.success is False
    assert result.error == "Insufficient funds"


@respx.mock
@pytest.mark.asyncio
async def test_charge_http_error():
    respx.post(PROCESS_URL).mock(return_value=Response(500, text="gateway down"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(PaymentError) as exc_info:
            await _charge(client)

    assert exc_info.value.status_code == 500


@respx.mock
@pytest.mark.asyncio
async def test_charge_rate_limited():
    respx.post(PROCESS_URL).mock(return_value=Response(429))

    async with httpx.AsyncClient() as client:
        with pytest.raises(RateLimitError):
            await _charge(client)


@respx.mock
@pytest.mark.asyncio
async def test_charge_timeout_becomes_payment_error():
    respx.post(PROCESS_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(PaymentError) as exc_info:
            await _charge(client)

    assert "unreachable" in exc_info.value.message
    assert exc_info.value.status_code is None
