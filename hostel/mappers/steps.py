"""Wizard step sequencing.

The step list for each mode is data: one table, one lookup function. Order
matters, navigation only ever moves one position forward or back.
"""

from collections.abc import Mapping
from typing import Any

from hostel.mappers.pricing import nights_between
from hostel.schemas.booking import (
    BookingData,
    BookingMode,
    BookingStep,
    RoomSelection,
    SellUnit,
    StepConfig,
)

STEP_LABELS: dict[BookingStep, str] = {
    BookingStep.search: "Dates",
    BookingStep.rooms: "Rooms",
    BookingStep.service_select: "Services",
    BookingStep.package_preview: "Package",
    BookingStep.extras: "Extras",
    BookingStep.details: "Details",
    BookingStep.payment: "Payment",
    BookingStep.confirmation: "Confirmation",
}

_TAIL = [BookingStep.extras, BookingStep.details, BookingStep.payment]

STEP_TABLE: dict[BookingMode, list[BookingStep]] = {
    BookingMode.accommodation: [BookingStep.search, BookingStep.rooms, *_TAIL],
    BookingMode.room_select: [BookingStep.search, BookingStep.rooms, *_TAIL],
    BookingMode.services_only: [BookingStep.service_select, *_TAIL],
    BookingMode.package: [BookingStep.package_preview, BookingStep.rooms, *_TAIL],
}


def _package_room_type(package: Any) -> str | None:
    if package is None:
        return None
    if isinstance(package, Mapping):
        return package.get("room_type")
    return getattr(package, "room_type", None)


def active_steps(mode: BookingMode | str, package: Any = None) -> list[StepConfig]:
    """Ordered steps for a mode.

    In package mode the rooms step is only kept when the package declares a
    room type.
    """
    mode = BookingMode(mode)
    keys = STEP_TABLE[mode]
    if mode == BookingMode.package and not _package_room_type(package):
        keys = [k for k in keys if k != BookingStep.rooms]
    return [StepConfig(key=k, label=STEP_LABELS[k]) for k in keys]


def step_index(steps: list[StepConfig], current: BookingStep | str) -> int:
    for i, step in enumerate(steps):
        if step.key == current:
            return i
    return -1


def progress(steps: list[StepConfig], current: BookingStep | str) -> float:
    index = step_index(steps, current)
    if index < 0 or not steps:
        return 0.0
    return (index + 1) / len(steps) * 100


def next_step(steps: list[StepConfig], current: BookingStep | str) -> BookingStep:
    index = step_index(steps, current)
    if 0 <= index < len(steps) - 1:
        return steps[index + 1].key
    return BookingStep(current)


def previous_step(steps: list[StepConfig], current: BookingStep | str) -> BookingStep:
    index = step_index(steps, current)
    if index > 0:
        return steps[index - 1].key
    return BookingStep(current)


def beds_covered(rooms: list[RoomSelection]) -> int:
    """Guests covered by bed-sold selections (dorms)."""
    return sum(r.quantity for r in rooms if r.sell_unit == SellUnit.bed)


def can_advance(step: BookingStep | str, data: BookingData) -> bool:
    """Whether the wizard may leave *step* with the current draft.

    Gating only: nothing here raises, the UI disables its buttons instead.
    """
    step = BookingStep(step)
    if step == BookingStep.search:
        return nights_between(data.check_in, data.check_out) > 0
    if step == BookingStep.rooms:
        if not data.rooms:
            return False
        if any(r.sell_unit == SellUnit.room for r in data.rooms):
            return True
        return beds_covered(data.rooms) >= data.guests
    if step == BookingStep.service_select:
        return bool(data.extras)
    if step == BookingStep.details:
        return data.guest_info is not None
    return True
