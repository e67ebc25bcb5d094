"""Persist generated images to the public images directory."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from pixshop.core.errors import WriteFailed

logger = logging.getLogger(__name__)

IMAGES_URL_PATH = "/images"


class AssetStore:
    """Local filesystem store whose files are served under ``/images``."""

    def __init__(self, images_dir: str | Path, public_base_url: str) -> None:
        self.images_dir = Path(images_dir).resolve()
        self.images_dir.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def public_url(self, filename: str) -> str:
        return f"{self.public_base_url}{IMAGES_URL_PATH}/{filename}"

    def store_image(
        self, sku: int, slot_name: str, image_bytes: bytes, image_format: str
    ) -> str:
        """Write the image for a product slot and return its public URL.

        The file name depends only on (sku, slot_name, image_format), so a
        second save to the same slot replaces the first.
        """
        filename = f"{sku}_{slot_name}.{image_format}"
        self._write(filename, image_bytes)
        logger.info(f"Stored {slot_name} image for SKU {sku} as {filename}")
        return self.public_url(filename)

    def store_generated(self, image_bytes: bytes, image_format: str) -> str:
        """Keep a copy of a freshly generated image for the generation log."""
        filename = f"generated-{uuid.uuid4()}.{image_format}"
        self._write(filename, image_bytes)
        return self.public_url(filename)

    def discard(self, public_url: str) -> None:
        """Remove a stored file by its public URL; missing files are ignored."""
        filename = public_url.rsplit("/", 1)[-1]
        try:
            (self.images_dir / filename).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove image {filename}: {e}")

    def _write(self, filename: str, image_bytes: bytes) -> None:
        target_path = self.images_dir / filename
        try:
            target_path.write_bytes(image_bytes)
        except OSError as e:
            logger.error(f"Failed to write image {target_path}: {e}", exc_info=True)
            raise WriteFailed(f"Failed to write image file: {e}") from e
