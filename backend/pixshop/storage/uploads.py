"""Staging of uploaded reference images on local disk."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import BinaryIO

from pixshop.core.errors import InvalidInput, UploadTooLarge, WriteFailed

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def stage_reference_image(
    file_obj: BinaryIO,
    uploads_dir: str | Path,
    *,
    content_type: str | None,
    original_name: str | None = None,
    max_bytes: int,
) -> Path:
    """Copy an uploaded image to the uploads dir and return the absolute path.

    Rejects non-image content types and anything larger than ``max_bytes``;
    a rejected upload leaves no file behind.
    """
    if not content_type or not content_type.startswith("image/"):
        raise InvalidInput("Only image files are allowed!")

    uploads_path = Path(uploads_dir).resolve()
    uploads_path.mkdir(parents=True, exist_ok=True)
    suffix = Path(original_name or "reference.png").suffix or ".png"
    target_path = uploads_path / f"{uuid.uuid4()}{suffix}"

    written = 0
    file_obj.seek(0)
    try:
        with target_path.open("wb") as destination:
            while True:
                chunk = file_obj.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLarge(
                        f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
                    )
                destination.write(chunk)
    except UploadTooLarge:
        delete_upload(target_path)
        raise
    except OSError as e:
        logger.error(f"OS error staging reference image: {e}", exc_info=True)
        delete_upload(target_path)
        raise WriteFailed(f"Failed to save uploaded file: {e}") from e

    logger.info(f"Staged reference image at {target_path} ({written} bytes)")
    return target_path


def delete_upload(path: str | Path) -> None:
    """Remove a staged file; a file that is already gone is fine."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to delete staged upload {path}: {e}")
