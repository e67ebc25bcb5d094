"""Database models package."""
from pixshop.db.models.generation_log import GenerationLog
from pixshop.db.models.product import SLOT_COLUMNS, Product, ProductStatus

__all__ = ["GenerationLog", "Product", "ProductStatus", "SLOT_COLUMNS"]
