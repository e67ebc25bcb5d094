"""Endpoints that save generated content onto product records."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from pixshop.api.dependencies.services import (
    get_asset_store,
    get_fulfillment_store,
    get_sku_lock,
)
from pixshop.api.schemas.product import (
    DescriptionSaveRequest,
    ImageSaveRequest,
    ProductRead,
    ProductUpdateResponse,
)
from pixshop.core.errors import PixshopError
from pixshop.services.fulfillment_store import ProductFulfillmentStore
from pixshop.services.product_updates import (
    ProductUpdate,
    save_product_description,
    save_product_image,
)
from pixshop.services.sku_lock import SkuLock
from pixshop.storage.asset_store import AssetStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(result: ProductUpdate) -> ProductUpdateResponse:
    return ProductUpdateResponse(
        message=result.message,
        product=ProductRead.model_validate(result.product),
    )


@router.post(
    "/update-product-image",
    summary="Save an image into a product slot",
    response_model=ProductUpdateResponse,
)
def update_product_image(
    payload: ImageSaveRequest,
    store: ProductFulfillmentStore = Depends(get_fulfillment_store),
    assets: AssetStore = Depends(get_asset_store),
    lock: SkuLock = Depends(get_sku_lock),
) -> ProductUpdateResponse:
    """Store the data-URL image for ``imageType`` and update fulfillment."""
    try:
        result = save_product_image(
            store,
            assets,
            lock,
            sku=payload.sku,
            image_type=payload.imageType,
            image_data_url=payload.imageDataUrl,
        )
    except PixshopError as e:
        if e.status_code >= 500:
            logger.error(f"Error saving image for SKU {payload.sku}: {e}")
            raise HTTPException(
                status_code=e.status_code,
                detail=f"Failed to save image: {e.message}",
            ) from e
        logger.info(f"Rejected image save for SKU {payload.sku}: {e}")
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    return _to_response(result)


@router.post(
    "/update-product-description",
    summary="Save a description into a product slot",
    response_model=ProductUpdateResponse,
)
def update_product_description(
    payload: DescriptionSaveRequest,
    store: ProductFulfillmentStore = Depends(get_fulfillment_store),
    lock: SkuLock = Depends(get_sku_lock),
) -> ProductUpdateResponse:
    try:
        result = save_product_description(
            store,
            lock,
            sku=payload.sku,
            desc_type=payload.descType,
            description=payload.description,
        )
    except PixshopError as e:
        if e.status_code >= 500:
            logger.error(f"Error saving description for SKU {payload.sku}: {e}")
            raise HTTPException(
                status_code=e.status_code,
                detail=f"Failed to save description: {e.message}",
            ) from e
        logger.info(f"Rejected description save for SKU {payload.sku}: {e}")
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    return _to_response(result)


@router.get(
    "/products/{sku}",
    summary="Fetch a product by SKU",
    response_model=ProductRead,
)
def get_product(
    sku: int,
    store: ProductFulfillmentStore = Depends(get_fulfillment_store),
) -> ProductRead:
    try:
        product = store.find(sku)
    except PixshopError as e:
        logger.error(f"Error fetching SKU {sku}: {e}")
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with SKU {sku} not found.",
        )
    return ProductRead.model_validate(product)
