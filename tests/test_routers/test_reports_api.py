import pytest

BOOKING = {
    "check_in": "2026-03-10",
    "check_out": "2026-03-13",
    "guests_count": 3,
    "rooms": [{"room_id": "dorm-1", "price_per_night": 25}],
    "guest_info": {"email": "ana@example.com", "full_name": "Ana Mora"},
}


@pytest.mark.asyncio
async def test_report_summary(client):
    await client.post("/bookings", json={**BOOKING, "payment_status": "paid"})
    resp = await client.post("/bookings", json=BOOKING)
    await client.post(f"/bookings/{resp.json()['booking_id']}/cancel")

    resp = await client.get(
        "/reports/summary", params={"day": "2026-03-11", "capacity": 6}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["revenue"]["bookings"] == 2
    assert body["revenue"]["total_revenue"] == pytest.approx(84.75)
    assert body["revenue"]["outstanding"] == 0
    assert body["occupied_beds"] == 3
    assert body["occupancy_rate"] == 50.0
    assert body["capacity"] == 6


@pytest.mark.asyncio
async def test_report_rejects_zero_capacity(client):
    resp = await client.get("/reports/summary", params={"capacity": 0})
    assert resp.status_code == 422
