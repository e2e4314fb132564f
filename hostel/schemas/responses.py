from __future__ import annotations

from pydantic import BaseModel

from hostel.schemas.booking import (
    BookingData,
    BookingMode,
    BookingStep,
    PricingSummary,
    StepConfig,
)


class FlowState(BaseModel):
    session_id: str
    mode: BookingMode
    current_step: BookingStep
    active_steps: list[StepConfig]
    step_index: int
    progress: float
    nights: int
    summary: PricingSummary
    data: BookingData
    can_advance: bool
    loading_package: bool = False
    package_error: str | None = None
    booking_id: str | None = None
    submit_error: str | None = None


class RevenueSummary(BaseModel):
    bookings: int
    total_revenue: float
    paid: float
    outstanding: float
    by_status: dict[str, int]


class ReportResponse(BaseModel):
    revenue: RevenueSummary
    occupancy_rate: float
    occupied_beds: int
    capacity: int
