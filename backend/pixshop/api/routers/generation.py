"""Endpoints that call the generation APIs and list generated images."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pixshop.api.dependencies.db import get_session
from pixshop.api.dependencies.services import (
    get_app_settings,
    get_asset_store,
    get_generation_gateway,
)
from pixshop.api.schemas.generation import (
    DescriptionRequest,
    DescriptionResponse,
    GenerationLogRead,
)
from pixshop.core.config import Settings
from pixshop.core.errors import PixshopError
from pixshop.db.models.generation_log import GenerationLog
from pixshop.services.generation_gateway import GeneratedImage, GenerationGateway
from pixshop.storage.asset_store import AssetStore
from pixshop.storage.uploads import delete_upload, stage_reference_image

logger = logging.getLogger(__name__)

router = APIRouter()


def _record_generation(
    db: Session, assets: AssetStore, prompt: str, image: GeneratedImage
) -> None:
    """Add the image to the generation log; the caller still gets its image on failure."""
    image_url = None
    try:
        image_url = assets.store_generated(image.data, image.image_format)
        db.add(
            GenerationLog(
                prompt=prompt,
                image_url=image_url,
                model_used=image.model_id,
                image_size=len(image.data),
            )
        )
        db.commit()
    except PixshopError as e:
        logger.error(f"Failed to store generated image for the log: {e}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error recording generation: {e}", exc_info=True)
        if image_url is not None:
            assets.discard(image_url)


@router.post("/generate-image", summary="Generate an image from a prompt")
async def generate_image(
    prompt: str | None = Form(None),
    reference_image: UploadFile | None = File(None, alias="referenceImage"),
    settings: Settings = Depends(get_app_settings),
    gateway: GenerationGateway = Depends(get_generation_gateway),
    assets: AssetStore = Depends(get_asset_store),
    db: Session = Depends(get_session),
) -> Response:
    """Return the raw image bytes with the model used in ``X-Model-Used``."""
    if not prompt or not prompt.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Prompt is required"
        )

    staged_path: Path | None = None
    try:
        reference_bytes = None
        if reference_image is not None and reference_image.filename:
            staged_path = stage_reference_image(
                reference_image.file,
                settings.uploads_dir,
                content_type=reference_image.content_type,
                original_name=reference_image.filename,
                max_bytes=settings.max_reference_image_bytes,
            )
            reference_bytes = staged_path.read_bytes()

        logger.info(f"Generating image with prompt: {prompt}")
        image = await gateway.generate_image(prompt, reference_bytes)
    except PixshopError as e:
        if e.status_code >= 500:
            logger.error(f"Error generating image: {e}")
            raise HTTPException(
                status_code=e.status_code,
                detail=f"Failed to generate image: {e.message}",
            ) from e
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except OSError as e:
        logger.error(f"Error reading staged reference image: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read uploaded file",
        ) from e
    finally:
        if staged_path is not None:
            delete_upload(staged_path)

    logger.info(f"Image generated successfully using {image.model_id}")
    if settings.record_generations:
        _record_generation(db, assets, prompt, image)

    return Response(
        content=image.data,
        media_type=f"image/{image.image_format}",
        headers={
            "X-Model-Used": image.model_id,
            "X-Image-Size": str(len(image.data)),
        },
    )


@router.post(
    "/generate-description",
    summary="Generate product description text",
    response_model=DescriptionResponse,
)
async def generate_description(
    payload: DescriptionRequest,
    gateway: GenerationGateway = Depends(get_generation_gateway),
) -> DescriptionResponse:
    try:
        description = await gateway.generate_description(payload.prompt)
    except PixshopError as e:
        if e.status_code >= 500:
            logger.error(f"Error generating description: {e}")
            raise HTTPException(
                status_code=e.status_code,
                detail=f"Failed to generate description: {e.message}",
            ) from e
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return DescriptionResponse(description=description)


@router.get(
    "/images",
    summary="List generated images, newest first",
    response_model=list[GenerationLogRead],
)
async def list_images(db: Session = Depends(get_session)) -> list[GenerationLogRead]:
    try:
        logs = db.scalars(
            select(GenerationLog).order_by(
                GenerationLog.created_at.desc(), GenerationLog.id.desc()
            )
        ).all()
    except SQLAlchemyError as e:
        logger.error(f"Database error listing generated images: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch images",
        ) from e
    return [GenerationLogRead.model_validate(log) for log in logs]
