from typing import Annotated

from fastapi import Depends, Request

from hostel.config import Settings
from hostel.services.catalog import CatalogService
from hostel.services.lifecycle import BookingLifecycleManager
from hostel.services.payments import PaymentService
from hostel.stores.drafts import DraftStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_lifecycle_manager(request: Request) -> BookingLifecycleManager:
    return request.app.state.lifecycle_manager


def get_payment_service(request: Request) -> PaymentService | None:
    return getattr(request.app.state, "payment_service", None)


def get_draft_store(request: Request) -> DraftStore:
    return request.app.state.draft_store


SettingsDep = Annotated[Settings, Depends(get_settings)]
CatalogDep = Annotated[CatalogService, Depends(get_catalog_service)]
LifecycleDep = Annotated[BookingLifecycleManager, Depends(get_lifecycle_manager)]
PaymentDep = Annotated[PaymentService | None, Depends(get_payment_service)]
DraftStoreDep = Annotated[DraftStore, Depends(get_draft_store)]
