import pytest


@pytest.mark.asyncio
async def test_expire_requires_secret(client):
    resp = await client.post("/cron/expire-bookings")
    assert resp.status_code == 401

    resp = await client.post(
        "/cron/expire-bookings", headers={"Authorization": "Bearer wrong"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_expire_cancels_old_pending_bookings(client):
    from hostel.main import app

    await app.state.store.insert(
        "bookings",
        {
            "id": "stale",
            "check_in": "2026-02-01",
            "check_out": "2026-02-03",
            "guests_count": 1,
            "total_amount": 50.0,
            "status": "pending_payment",
            "created_at": "2020-01-01T00:00:00+00:00",
        },
    )

    resp = await client.post(
        "/cron/expire-bookings", headers={"Authorization": "Bearer cron-secret"}
    )

    assert resp.status_code == 200
    assert resp.json() == {"expired_count": 1, "expired_ids": ["stale"]}
    booking = await client.get("/bookings/stale")
    assert booking.json()["status"] == "cancelled"
