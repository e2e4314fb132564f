import httpx
import pytest
from httpx import ASGITransport

from hostel.stores.memory import MemoryStore


@pytest.fixture
def mock_env(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("RESEND_API_KEY", "")
    monkeypatch.setenv("GREENPAY_MERCHANT_ID", "")
    monkeypatch.setenv("CRON_SECRET", "cron-secret")


@pytest.fixture
def store():
    return MemoryStore()


async def seed_catalog(store: MemoryStore) -> None:
    """Two rooms priced for every season, one package with and one without a stay."""
    await store.insert(
        "rooms",
        [
            {"id": "dorm-1", "name": "Ocean Dorm", "type": "dorm", "capacity": 8,
             "sell_unit": "bed", "is_active": True},
            {"id": "priv-1", "name": "Garden Private", "type": "private", "capacity": 2,
             "sell_unit": "room", "is_active": True},
            {"id": "old-1", "name": "Closed Room", "type": "dorm", "capacity": 4,
             "sell_unit": "bed", "is_active": False},
        ],
    )
    await store.insert(
        "season_pricing",
        [
            {"room_id": "dorm-1", "season": "high", "base_price": 32.5},
            {"room_id": "dorm-1", "season": "mid", "base_price": 25.0},
            {"room_id": "dorm-1", "season": "low", "base_price": 20.0},
            {"room_id": "priv-1", "season": "mid", "base_price": 80.0},
        ],
    )
    await store.insert(
        "services",
        [
            {"id": "surf-lesson", "name": "Surf Lesson", "price": 40.0, "is_active": True},
            {"id": "yoga", "name": "Yoga Class", "price": 15.0, "is_active": True},
        ],
    )
    await store.insert(
        "surf_packages",
        [
            {"id": "pkg-stay", "name": "Surf Week", "nights": 7, "surf_lessons": 5,
             "room_type": "dorm", "includes": ["7 nights", "5 lessons"], "price": 450.0,
             "is_active": True},
            {"id": "pkg-couple", "name": "Couples Escape", "nights": 3,
             "room_type": None, "includes": ["3 lessons"], "price": 300.0,
             "is_for_two": True, "is_active": True},
            {"id": "pkg-retired", "name": "Old Deal", "nights": 2, "is_active": False},
        ],
    )


@pytest.fixture
async def catalog_store(store):
    await seed_catalog(store)
    return store


@pytest.fixture
async def client(mock_env):
    from hostel.main import app, lifespan

    async with lifespan(app):
        await seed_catalog(app.state.store)
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as c:
            yield c
