"""Dependencies exposing the components built by the app factory."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from pixshop.api.dependencies.db import get_session
from pixshop.core.config import Settings
from pixshop.services.fulfillment_store import ProductFulfillmentStore
from pixshop.services.generation_gateway import GenerationGateway
from pixshop.services.sku_lock import SkuLock
from pixshop.storage.asset_store import AssetStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_generation_gateway(request: Request) -> GenerationGateway:
    return request.app.state.generation_gateway


def get_asset_store(request: Request) -> AssetStore:
    return request.app.state.asset_store


def get_sku_lock(request: Request) -> SkuLock:
    return request.app.state.sku_lock


def get_fulfillment_store(db: Session = Depends(get_session)) -> ProductFulfillmentStore:
    return ProductFulfillmentStore(db)
