import logging
from datetime import date, timedelta

import httpx
from pydantic import BaseModel, ValidationError

from hostel.exceptions.custom import CatalogError, StoreError
from hostel.mappers.availability import HOLDING_STATUSES, room_availability
from hostel.mappers.pricing import get_season, nightly_rate
from hostel.schemas.catalog import (
    PricedRoom,
    Room,
    RoomAvailability,
    RoomBlock,
    SeasonPricing,
    Service,
    SurfPackage,
)
from hostel.stores.base import BookingStore, Filter, eq, gt, gte, in_, lt, lte

logger = logging.getLogger(__name__)

PACKAGES_TABLE = "surf_packages"
ROOMS_TABLE = "rooms"
PRICING_TABLE = "season_pricing"
SERVICES_TABLE = "services"
BOOKINGS_TABLE = "bookings"
BOOKING_ROOMS_TABLE = "booking_rooms"
ROOM_BLOCKS_TABLE = "room_blocks"


class CatalogService:
    """Read-only access to packages, season-priced rooms and services.

    Store failures, transport errors and malformed rows all surface as
    ``CatalogError`` so callers have one recoverable error to handle.
    Rate limits pass through as ``RateLimitError``.
    """

    def __init__(self, store: BookingStore):
        self._store = store

    async def _select(
        self,
        table: str,
        filters: list[Filter] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        try:
            return await self._store.select(table, filters, order=order, limit=limit)
        except StoreError as exc:
            raise CatalogError(exc.message, status_code=exc.status_code) from exc
        except httpx.HTTPError as exc:
            logger.exception("Catalog read from %s failed", table)
            raise CatalogError(f"Could not reach the catalog: {exc}") from exc

    @staticmethod
    def _parse(model: type[BaseModel], row: dict):
        try:
            return model(**row)
        except ValidationError as exc:
            logger.warning("Malformed %s row %s: %s", model.__name__, row.get("id"), exc)
            raise CatalogError(f"Malformed {model.__name__} record") from exc

    async def get_package(self, package_id: str) -> SurfPackage:
        rows = await self._select(PACKAGES_TABLE, [eq("id", package_id)], limit=1)
        if not rows:
            raise CatalogError(f"Package {package_id} not found", status_code=404)
        package = self._parse(SurfPackage, rows[0])
        if not package.is_active:
            raise CatalogError(f"Package {package_id} is not active", status_code=404)

        logger.info("Loaded package %s (%d nights)", package.id, package.nights)
        return package

    async def availability(
        self, rooms: list[Room], check_in: date, check_out: date
    ) -> dict[str, RoomAvailability]:
        """Beds left per room for the stay, after bookings and room blocks."""
        bookings = await self._select(
            BOOKINGS_TABLE,
            [
                lt("check_in", check_out),
                gt("check_out", check_in),
                in_("status", HOLDING_STATUSES),
            ],
        )
        assignments: list[dict] = []
        if bookings:
            assignments = await self._select(
                BOOKING_ROOMS_TABLE, [in_("booking_id", [b["id"] for b in bookings])]
            )
        block_rows = await self._select(
            ROOM_BLOCKS_TABLE, [lte("start_date", check_out), gte("end_date", check_in)]
        )
        blocks = [self._parse(RoomBlock, row) for row in block_rows]

        return {
            room.id: room_availability(
                room,
                [a for a in assignments if a.get("room_id") == room.id],
                [b for b in blocks if b.room_id == room.id],
            )
            for room in rooms
        }

    async def list_rooms(self, check_in: date, check_out: date | None = None) -> list[PricedRoom]:
        """Active rooms with the nightly rate for the check-in season and
        the beds still free for the stay (one night when no check-out is given)."""
        check_out = check_out or check_in + timedelta(days=1)
        room_rows = await self._select(ROOMS_TABLE, [eq("is_active", True)], order="name")
        price_rows = await self._select(PRICING_TABLE)

        prices: dict[str, dict[str, float]] = {}
        for row in price_rows:
            pricing = self._parse(SeasonPricing, row)
            prices.setdefault(pricing.room_id, {})[pricing.season] = pricing.base_price

        rooms = [self._parse(Room, row) for row in room_rows]
        free = await self.availability(rooms, check_in, check_out)

        season = get_season(check_in)
        priced: list[PricedRoom] = []
        for room in rooms:
            rate = nightly_rate(prices.get(room.id, {}), check_in)
            if rate is None:
                logger.warning("Room %s has no %s/mid season price, skipping", room.id, season)
                continue
            priced.append(
                PricedRoom(
                    room=room,
                    season=season,
                    price_per_night=rate,
                    availability=free[room.id],
                )
            )

        logger.info("Priced %d rooms for %s (%s season)", len(priced), check_in, season)
        return priced

    async def list_services(self) -> list[Service]:
        rows = await self._select(SERVICES_TABLE, [eq("is_active", True)], order="name")
        return [self._parse(Service, row) for row in rows]
