"""SQLAlchemy model for product fulfillment records."""

import enum

from sqlalchemy import BigInteger, Column, Integer, String, Text, func
from sqlalchemy.types import DateTime

from pixshop.db.base import Base


class ProductStatus(str, enum.Enum):
    PENDING = "Pending"
    FULFILLED = "Fulfilled"


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    sku = Column(BigInteger, nullable=False, unique=True, index=True)
    status = Column(String(16), nullable=False, default=ProductStatus.PENDING.value)
    category = Column(Text)
    # Legacy slot, never written by the save endpoints
    pre_image_url = Column(Text)
    wax_image_url = Column(Text)
    cast_image_url = Column(Text)
    final_image_url = Column(Text)
    wax_description = Column(Text)
    cast_description = Column(Text)
    final_description = Column(Text)
    # Re-stamped when the record becomes Fulfilled
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


# Slot key as it appears in requests/documents -> column attribute name
SLOT_COLUMNS = {
    "Wax Image URL": "wax_image_url",
    "Cast Image URL": "cast_image_url",
    "Final Image URL": "final_image_url",
    "Wax Description": "wax_description",
    "Cast Description": "cast_description",
    "Final Description": "final_description",
}
