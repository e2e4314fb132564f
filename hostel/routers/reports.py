from datetime import date

from fastapi import APIRouter, Query

from hostel.dependencies import LifecycleDep
from hostel.mappers.reports import (
    DEFAULT_BED_CAPACITY,
    occupancy_rate,
    occupied_beds,
    revenue_summary,
)
from hostel.schemas.responses import ReportResponse

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/summary", response_model=ReportResponse)
async def report_summary(
    manager: LifecycleDep,
    start_date: date | None = None,
    end_date: date | None = None,
    day: date | None = None,
    capacity: int = Query(default=DEFAULT_BED_CAPACITY, gt=0),
) -> ReportResponse:
    bookings = await manager.list_bookings(start_date=start_date, end_date=end_date)
    day = day or date.today()
    return ReportResponse(
        revenue=revenue_summary(bookings),
        occupancy_rate=occupancy_rate(bookings, day, capacity),
        occupied_beds=occupied_beds(bookings, day),
        capacity=capacity,
    )
