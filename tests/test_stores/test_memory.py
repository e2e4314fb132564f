from datetime import date

import pytest

from hostel.schemas.lifecycle import BookingStatus
from hostel.stores.base import Filter, eq, gt, gte, in_, lt, neq
from hostel.stores.memory import MemoryStore


@pytest.fixture
async def bookings_store():
    store = MemoryStore()
    await store.insert(
        "bookings",
        [
            {"id": "b1", "check_in": date(2026, 6, 1), "status": BookingStatus.confirmed},
            {"id": "b2", "check_in": date(2026, 6, 5), "status": BookingStatus.pending_payment},
            {"id": "b3", "check_in": date(2026, 5, 20), "status": BookingStatus.cancelled},
        ],
    )
    return store


@pytest.mark.asyncio
async def test_insert_assigns_id_and_timestamps():
    store = MemoryStore()
    rows = await store.insert("users", {"email": "ana@example.com"})

    assert len(rows) == 1
    assert rows[0]["id"]
    assert rows[0]["created_at"] == rows[0]["updated_at"]


@pytest.mark.asyncio
async def test_insert_normalizes_dates_and_enums(bookings_store):
    rows = await bookings_store.select("bookings", [eq("id", "b1")])
    assert rows[0]["check_in"] == "2026-06-01"
    assert rows[0]["status"] == "confirmed"


@pytest.mark.asyncio
async def test_select_filters_are_anded(bookings_store):
    rows = await bookings_store.select(
        "bookings", [gte("check_in", date(2026, 6, 1)), neq("status", "confirmed")]
    )
    assert [r["id"] for r in rows] == ["b2"]


@pytest.mark.asyncio
async def test_select_in_filter(bookings_store):
    rows = await bookings_store.select(
        "bookings",
        [in_("status", [BookingStatus.confirmed, BookingStatus.cancelled])],
        order="id",
    )
    assert [r["id"] for r in rows] == ["b1", "b3"]


@pytest.mark.asyncio
async def test_select_order_desc_and_limit(bookings_store):
    rows = await bookings_store.select("bookings", order="check_in.desc", limit=2)
    assert [r["id"] for r in rows] == ["b2", "b1"]


@pytest.mark.asyncio
async def test_comparison_skips_missing_values(bookings_store):
    await bookings_store.insert("bookings", {"id": "b4", "status": "confirmed"})
    rows = await bookings_store.select("bookings", [lt("check_in", date(2026, 6, 2))])
    assert sorted(r["id"] for r in rows) == ["b1", "b3"]


@pytest.mark.asyncio
async def test_gt_is_strict(bookings_store):
    rows = await bookings_store.select("bookings", [gt("check_in", date(2026, 6, 1))])
    assert [r["id"] for r in rows] == ["b2"]


@pytest.mark.asyncio
async def test_select_unknown_table_is_empty():
    assert await MemoryStore().select("nothing") == []


@pytest.mark.asyncio
async def test_returned_rows_are_copies(bookings_store):
    rows = await bookings_store.select("bookings", [eq("id", "b1")])
    rows[0]["status"] = "tampered"

    again = await bookings_store.select("bookings", [eq("id", "b1")])
    assert again[0]["status"] == "confirmed"


@pytest.mark.asyncio
async def test_update_returns_changed_rows(bookings_store):
    rows = await bookings_store.update(
        "bookings", [eq("status", "pending_payment")], {"status": BookingStatus.cancelled}
    )

    assert [r["id"] for r in rows] == ["b2"]
    assert rows[0]["status"] == "cancelled"


@pytest.mark.asyncio
async def test_update_without_match_returns_empty(bookings_store):
    assert await bookings_store.update("bookings", [eq("id", "nope")], {"status": "x"}) == []


@pytest.mark.asyncio
async def test_delete_removes_rows(bookings_store):
    removed = await bookings_store.delete("bookings", [eq("id", "b1")])

    assert [r["id"] for r in removed] == ["b1"]
    assert await bookings_store.select("bookings", [eq("id", "b1")]) == []
    assert len(await bookings_store.select("bookings")) == 2


def test_filter_rejects_unknown_op():
    with pytest.raises(ValueError):
        Filter("status", "like", "conf%")
