from datetime import date

import httpx
import pytest

from hostel.exceptions.custom import CatalogError, StoreError
from hostel.services.catalog import CatalogService
from hostel.stores.memory import MemoryStore


class BrokenStore(MemoryStore):
    async def select(self, table, filters=None, *, order=None, limit=None):
        raise StoreError("connection reset", status_code=503)


class UnreachableStore(MemoryStore):
    async def select(self, table, filters=None, *, order=None, limit=None):
        raise httpx.ConnectError("connection refused")


@pytest.mark.asyncio
async def test_get_package(catalog_store):
    package = await CatalogService(catalog_store).get_package("pkg-stay")

    assert package.name == "Surf Week"
    assert package.nights == 7
    assert package.room_type == "dorm"


@pytest.mark.asyncio
async def test_get_package_missing_is_404(catalog_store):
    with pytest.raises(CatalogError) as exc_info:
        await CatalogService(catalog_store).get_package("nope")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_get_package_inactive_is_404(catalog_store):
    with pytest.raises(CatalogError) as exc_info:
        await CatalogService(catalog_store).get_package("pkg-retired")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_store_errors_become_catalog_errors():
    with pytest.raises(CatalogError) as exc_info:
        await CatalogService(BrokenStore()).get_package("pkg-stay")
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_list_rooms_priced_for_season(catalog_store):
    rooms = await CatalogService(catalog_store).list_rooms(date(2026, 2, 10))

    by_id = {r.room.id: r for r in rooms}
    assert set(by_id) == {"dorm-1", "priv-1"}
    assert by_id["dorm-1"].season == "high"
    assert by_id["dorm-1"].price_per_night == 32.5
    # No high-season row, mid rate applies
    assert by_id["priv-1"].price_per_night == 80.0


@pytest.mark.asyncio
async def test_list_rooms_skips_unpriced(catalog_store):
    await catalog_store.insert(
        "rooms",
        {"id": "new-1", "name": "New Dorm", "type": "dorm", "capacity": 6, "is_active": True},
    )
    rooms = await CatalogService(catalog_store).list_rooms(date(2026, 9, 10))

    assert "new-1" not in [r.room.id for r in rooms]
    assert {r.room.id: r.price_per_night for r in rooms}["dorm-1"] == 20.0


@pytest.mark.asyncio
async def test_list_services_active_only(catalog_store):
    await catalog_store.insert(
        "services", {"id": "old", "name": "Old Tour", "price": 10.0, "is_active": False}
    )
    services = await CatalogService(catalog_store).list_services()
    assert [s.id for s in services] == ["surf-lesson", "yoga"]


@pytest.mark.asyncio
async def test_transport_errors_become_catalog_errors():
    service = CatalogService(UnreachableStore())

    with pytest.raises(CatalogError):
        await service.get_package("pkg-stay")
    with pytest.raises(CatalogError):
        await service.list_services()
    with pytest.raises(CatalogError):
        await service.list_rooms(date(2026, 3, 10))


@pytest.mark.asyncio
async def test_malformed_package_row_is_catalog_error(store):
    await store.insert("surf_packages", {"id": "pkg-bad", "name": "Broken", "nights": "many"})

    with pytest.raises(CatalogError) as exc_info:
        await CatalogService(store).get_package("pkg-bad")
    assert "Malformed" in exc_info.value.message


async def _book(store, room_id, check_in, check_out, beds=1, status="confirmed"):
    booking = await store.insert(
        "bookings",
        {"check_in": check_in, "check_out": check_out, "guests_count": beds,
         "total_amount": 100.0, "status": status},
    )
    await store.insert(
        "booking_rooms",
        [{"booking_id": booking[0]["id"], "room_id": room_id, "price_per_night": 25}
         for _ in range(beds)],
    )


@pytest.mark.asyncio
async def test_list_rooms_subtracts_overlapping_bookings(catalog_store):
    await _book(catalog_store, "dorm-1", date(2026, 3, 9), date(2026, 3, 12), beds=3)
    # Checks out the day the stay starts
    await _book(catalog_store, "dorm-1", date(2026, 3, 5), date(2026, 3, 10), beds=2)
    await _book(catalog_store, "dorm-1", date(2026, 3, 10), date(2026, 3, 11), beds=4,
                status="cancelled")
    await _book(catalog_store, "priv-1", date(2026, 3, 11), date(2026, 3, 12))

    rooms = await CatalogService(catalog_store).list_rooms(date(2026, 3, 10), date(2026, 3, 13))

    by_id = {r.room.id: r.availability for r in rooms}
    assert by_id["dorm-1"].total_beds == 8
    assert by_id["dorm-1"].booked_beds == 3
    assert by_id["dorm-1"].available_beds == 5
    assert by_id["dorm-1"].is_fully_booked is False
    # Whole-room unit: one booking takes the room
    assert by_id["priv-1"].available_beds == 0
    assert by_id["priv-1"].is_fully_booked is True


@pytest.mark.asyncio
async def test_list_rooms_honours_room_blocks(catalog_store):
    await catalog_store.insert(
        "room_blocks",
        [
            {"room_id": "priv-1", "start_date": "2026-03-01", "end_date": "2026-03-20",
             "reason": "Painting"},
            {"room_id": "dorm-1", "bed_id": "dorm-1-b1", "start_date": "2026-03-12",
             "end_date": "2026-03-15"},
        ],
    )

    rooms = await CatalogService(catalog_store).list_rooms(date(2026, 3, 10), date(2026, 3, 13))

    by_id = {r.room.id: r.availability for r in rooms}
    assert by_id["priv-1"].is_blocked is True
    assert by_id["priv-1"].is_fully_booked is True
    assert by_id["dorm-1"].is_blocked is False
    assert by_id["dorm-1"].blocked_beds == 1
    assert by_id["dorm-1"].available_beds == 7
