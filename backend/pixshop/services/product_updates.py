"""Save generated images and descriptions onto product records.

Each save runs the same pipeline and stops at the first failure:

    validate -> resolve SKU -> [store image file] -> set slot
             -> recompute status -> save

Nothing is written to the product if validation, lookup or the image write
fails.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass

from pixshop.core.errors import InvalidInput, InvalidSlot, NotFound
from pixshop.db.models.product import SLOT_COLUMNS, Product
from pixshop.services.fulfillment_store import ProductFulfillmentStore
from pixshop.services.sku_lock import SkuLock
from pixshop.storage.asset_store import AssetStore

logger = logging.getLogger(__name__)

DATA_URL_RE = re.compile(r"^data:image/([a-zA-Z0-9.+-]+)((?:;[^,;]*)*),(.*)$", re.DOTALL)
IMAGE_FORMATS = {
    "png": "png",
    "jpeg": "jpeg",
    "jpg": "jpeg",
    "gif": "gif",
    "webp": "webp",
    "bmp": "bmp",
}


@dataclass(frozen=True)
class ProductUpdate:
    message: str
    product: Product
    fulfilled_now: bool = False


def decode_image_data_url(data_url: str) -> tuple[bytes, str]:
    """Split a ``data:image/<fmt>;base64,<payload>`` string into bytes + format."""
    match = DATA_URL_RE.match(data_url.strip())
    if not match:
        raise InvalidInput("Invalid imageDataUrl format")
    subtype, params, payload = match.groups()
    if "base64" not in params.lower().split(";"):
        raise InvalidInput("Invalid imageDataUrl format: payload must be base64")
    image_format = IMAGE_FORMATS.get(subtype.lower())
    if image_format is None:
        raise InvalidInput(f"Unsupported image format: {subtype}")
    try:
        image_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput("Invalid imageDataUrl format: bad base64 payload") from e
    if not image_bytes:
        raise InvalidInput("Invalid imageDataUrl format: empty payload")
    return image_bytes, image_format


def image_slot_key(image_type: str) -> str:
    slot_key = f"{image_type} Image URL"
    if slot_key not in SLOT_COLUMNS:
        raise InvalidSlot(f"Invalid imageType: {image_type}")
    return slot_key


def description_slot_key(desc_type: str) -> str:
    slot_key = f"{desc_type} Description"
    if slot_key not in SLOT_COLUMNS:
        raise InvalidSlot(f"Invalid descType: {desc_type}")
    return slot_key


def _resolve(store: ProductFulfillmentStore, sku: int) -> Product:
    product = store.find(sku)
    if product is None:
        raise NotFound(f"Product with SKU {sku} not found.")
    return product


def _apply(
    store: ProductFulfillmentStore,
    lock: SkuLock,
    product: Product,
    slot_key: str,
    value: str,
) -> bool:
    with lock.hold(product.sku):
        store.set_slot(product, slot_key, value)
        fulfilled_now = store.recompute_status(product)
        store.save(product)
    return fulfilled_now


def save_product_image(
    store: ProductFulfillmentStore,
    assets: AssetStore,
    lock: SkuLock,
    *,
    sku: int | None,
    image_type: str | None,
    image_data_url: str | None,
) -> ProductUpdate:
    """Persist an image (sent as a data URL) into the product's image slot."""
    if not sku or not image_type or not image_data_url:
        raise InvalidInput("SKU, imageType, and imageDataUrl are required")
    image_bytes, image_format = decode_image_data_url(image_data_url)

    product = _resolve(store, sku)
    slot_key = image_slot_key(image_type)
    public_url = assets.store_image(product.sku, image_type, image_bytes, image_format)
    fulfilled_now = _apply(store, lock, product, slot_key, public_url)

    return ProductUpdate(
        message=f"Image for SKU {sku} saved as {image_type} successfully.",
        product=product,
        fulfilled_now=fulfilled_now,
    )


def save_product_description(
    store: ProductFulfillmentStore,
    lock: SkuLock,
    *,
    sku: int | None,
    desc_type: str | None,
    description: str | None,
) -> ProductUpdate:
    """Persist description text into the product's description slot."""
    if not sku or not desc_type or not description or not description.strip():
        raise InvalidInput("SKU, descType, and description are required")

    product = _resolve(store, sku)
    slot_key = description_slot_key(desc_type)
    fulfilled_now = _apply(store, lock, product, slot_key, description.strip())

    return ProductUpdate(
        message=f"Description for SKU {sku} saved as {desc_type} successfully.",
        product=product,
        fulfilled_now=fulfilled_now,
    )
