"""Product lookups, slot writes and the Pending -> Fulfilled transition."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import and_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pixshop.core.errors import InvalidSlot, PersistFailed
from pixshop.db.models.product import SLOT_COLUMNS, Product, ProductStatus

logger = logging.getLogger(__name__)


def _slot_filled(column):
    return and_(column.isnot(None), column != "")


# The legacy pre-image slot is not part of the check.
REQUIRED_SLOT_CLAUSES = [_slot_filled(getattr(Product, attr)) for attr in SLOT_COLUMNS.values()]


def is_fulfilled(product: Product) -> bool:
    """True when every required slot holds a non-empty value."""
    return all(getattr(product, attr) for attr in SLOT_COLUMNS.values())


class ProductFulfillmentStore:
    """Session-bound access to product records.

    Slot writes and the status flip are single UPDATE statements keyed by SKU,
    so two requests filling different slots of the same product never
    overwrite each other and only one of them can flip the status.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def find(self, sku: int) -> Product | None:
        try:
            return self.db.scalar(select(Product).where(Product.sku == sku))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error looking up SKU {sku}: {e}", exc_info=True)
            raise PersistFailed(f"Failed to look up product {sku}") from e

    def set_slot(self, product: Product, slot_key: str, value: str) -> None:
        attr = SLOT_COLUMNS.get(slot_key)
        if attr is None:
            raise InvalidSlot(f"Invalid slot: {slot_key}")
        sku = product.sku

        try:
            self.db.execute(
                update(Product)
                .where(Product.sku == sku)
                .values({attr: value})
                .execution_options(synchronize_session=False)
            )
            # Pick up slots written by other requests as well as ours
            self.db.refresh(product)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Database error writing '{slot_key}' for SKU {sku}: {e}",
                exc_info=True,
            )
            raise PersistFailed(f"Failed to update {slot_key}") from e
        logger.info(f"Updated field '{slot_key}' for SKU {product.sku}")

    def recompute_status(self, product: Product) -> bool:
        """Flip the product to Fulfilled if all required slots are filled.

        Returns True only for the call that performs the transition; a product
        that is already Fulfilled is left alone and keeps its timestamp.
        """
        if product.status == ProductStatus.FULFILLED.value:
            return False
        if not is_fulfilled(product):
            return False

        sku = product.sku
        fulfilled_at = datetime.now(timezone.utc)
        try:
            result = self.db.execute(
                update(Product)
                .where(
                    Product.sku == sku,
                    Product.status == ProductStatus.PENDING.value,
                    *REQUIRED_SLOT_CLAUSES,
                )
                .values(status=ProductStatus.FULFILLED.value, created_at=fulfilled_at)
                .execution_options(synchronize_session=False)
            )
            self.db.refresh(product)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Database error updating status for SKU {sku}: {e}",
                exc_info=True,
            )
            raise PersistFailed("Failed to update product status") from e

        if not result.rowcount:
            return False
        logger.info(f"Product {product.sku} status updated to Fulfilled.")
        return True

    def save(self, product: Product) -> None:
        """Commit the record; this is the unit of durability."""
        sku = product.sku
        try:
            self.db.commit()
            self.db.refresh(product)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error saving SKU {sku}: {e}", exc_info=True)
            raise PersistFailed(f"Failed to save product {sku}") from e
