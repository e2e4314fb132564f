import logging
from datetime import date, timedelta

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from hostel.dependencies import CatalogDep, DraftStoreDep, LifecycleDep, PaymentDep
from hostel.schemas.booking import (
    BookingMode,
    BookingStep,
    ExtraSelection,
    GuestInfo,
    RoomSelection,
)
from hostel.schemas.catalog import PricedRoom, Service
from hostel.schemas.payments import CardDetails
from hostel.schemas.responses import FlowState
from hostel.services.catalog import CatalogService
from hostel.services.flow import BookingFlowController
from hostel.services.lifecycle import BookingLifecycleManager
from hostel.services.payments import PaymentService
from hostel.stores.drafts import DraftStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flow", tags=["flow"])


class StartFlowRequest(BaseModel):
    mode: BookingMode = BookingMode.accommodation
    check_in: date | None = None
    check_out: date | None = None
    guests: int = 2
    package_id: str | None = None
    room_id: str | None = None
    room_name: str | None = None
    query_params: dict[str, str] = {}


class SearchRequest(BaseModel):
    check_in: date
    check_out: date
    guests: int = 2


class RoomsRequest(BaseModel):
    rooms: list[RoomSelection]


class ServiceSelectRequest(BaseModel):
    extras: list[ExtraSelection]
    service_dates: dict[str, str] = {}


class ExtrasRequest(BaseModel):
    extras: list[ExtraSelection] = []


class SetStepRequest(BaseModel):
    step: BookingStep


class SubmitRequest(BaseModel):
    card: CardDetails | None = None


def _resume(
    session_id: str,
    drafts: DraftStore,
    catalog: CatalogService | None = None,
    lifecycle: BookingLifecycleManager | None = None,
    payments: PaymentService | None = None,
) -> BookingFlowController:
    draft = drafts.get_draft(session_id)
    if draft is None:
        raise HTTPException(status_code=404, detail=f"No booking in progress for {session_id}")
    return BookingFlowController(
        session_id,
        draft.mode,
        drafts,
        initial_check_in=draft.data.check_in,
        initial_check_out=draft.data.check_out,
        initial_guests=draft.data.guests,
        catalog=catalog,
        lifecycle=lifecycle,
        payments=payments,
    )


@router.post("/{session_id}", response_model=FlowState, status_code=201)
async def start_flow(
    session_id: str,
    drafts: DraftStoreDep,
    catalog: CatalogDep,
    request: StartFlowRequest | None = None,
) -> FlowState:
    request = request or StartFlowRequest()
    today = date.today()
    check_in = request.check_in or today
    check_out = request.check_out or check_in + timedelta(days=1)

    controller = BookingFlowController(
        session_id,
        request.mode,
        drafts,
        initial_check_in=check_in,
        initial_check_out=check_out,
        initial_guests=request.guests,
        package_id=request.package_id,
        room_id=request.room_id,
        room_name=request.room_name,
        query_params=request.query_params,
        catalog=catalog,
    )
    if controller.mode == BookingMode.package and controller.data.package_data is None:
        await controller.load_package()

    logger.info(
        "Session %s %s %s flow at %s",
        session_id,
        "resumed" if controller.resumed else "started",
        controller.mode,
        controller.current_step,
    )
    return controller.snapshot()


@router.get("/{session_id}", response_model=FlowState)
async def get_flow(session_id: str, drafts: DraftStoreDep) -> FlowState:
    return _resume(session_id, drafts).snapshot()


@router.delete("/{session_id}", status_code=204)
async def abandon_flow(session_id: str, drafts: DraftStoreDep) -> None:
    drafts.clear(session_id)


@router.post("/{session_id}/next", response_model=FlowState)
async def go_next(session_id: str, drafts: DraftStoreDep) -> FlowState:
    controller = _resume(session_id, drafts)
    controller.go_next()
    return controller.snapshot()


@router.post("/{session_id}/back", response_model=FlowState)
async def go_back(session_id: str, drafts: DraftStoreDep) -> FlowState:
    controller = _resume(session_id, drafts)
    controller.go_back()
    return controller.snapshot()


@router.put("/{session_id}/step", response_model=FlowState)
async def set_step(session_id: str, drafts: DraftStoreDep, request: SetStepRequest) -> FlowState:
    controller = _resume(session_id, drafts)
    try:
        controller.set_step(request.step)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return controller.snapshot()


@router.post("/{session_id}/package/retry", response_model=FlowState)
async def retry_package(session_id: str, drafts: DraftStoreDep, catalog: CatalogDep) -> FlowState:
    controller = _resume(session_id, drafts, catalog=catalog)
    await controller.retry_package()
    return controller.snapshot()


@router.get("/{session_id}/rooms", response_model=list[PricedRoom])
async def available_rooms(
    session_id: str, drafts: DraftStoreDep, catalog: CatalogDep
) -> list[PricedRoom]:
    controller = _resume(session_id, drafts)
    data = controller.data
    return await catalog.list_rooms(data.check_in, data.check_out)


@router.get("/{session_id}/services", response_model=list[Service])
async def available_services(
    session_id: str, drafts: DraftStoreDep, catalog: CatalogDep
) -> list[Service]:
    _resume(session_id, drafts)
    return await catalog.list_services()


@router.post("/{session_id}/search", response_model=FlowState)
async def complete_search(
    session_id: str, drafts: DraftStoreDep, request: SearchRequest
) -> FlowState:
    controller = _resume(session_id, drafts)
    controller.complete_search(request.check_in, request.check_out, request.guests)
    return controller.snapshot()


@router.post("/{session_id}/rooms", response_model=FlowState)
async def complete_rooms(session_id: str, drafts: DraftStoreDep, request: RoomsRequest) -> FlowState:
    controller = _resume(session_id, drafts)
    controller.complete_rooms(request.rooms)
    return controller.snapshot()


@router.post("/{session_id}/service-select", response_model=FlowState)
async def complete_service_select(
    session_id: str, drafts: DraftStoreDep, request: ServiceSelectRequest
) -> FlowState:
    controller = _resume(session_id, drafts)
    controller.complete_service_select(request.extras, request.service_dates)
    return controller.snapshot()


@router.post("/{session_id}/extras", response_model=FlowState)
async def complete_extras(
    session_id: str, drafts: DraftStoreDep, request: ExtrasRequest
) -> FlowState:
    controller = _resume(session_id, drafts)
    controller.complete_extras(request.extras)
    return controller.snapshot()


@router.post("/{session_id}/details", response_model=FlowState)
async def complete_details(session_id: str, drafts: DraftStoreDep, request: GuestInfo) -> FlowState:
    controller = _resume(session_id, drafts)
    controller.complete_details(request)
    return controller.snapshot()


@router.post("/{session_id}/submit", response_model=FlowState)
async def submit(
    session_id: str,
    drafts: DraftStoreDep,
    lifecycle: LifecycleDep,
    payments: PaymentDep,
    request: SubmitRequest | None = None,
) -> FlowState:
    request = request or SubmitRequest()
    controller = _resume(session_id, drafts, lifecycle=lifecycle, payments=payments)
    await controller.submit(card=request.card)
    return controller.snapshot()
