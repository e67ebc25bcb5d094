"""Client for the Google AI image (Imagen) and text (Gemini) endpoints."""

from __future__ import annotations

import base64
import binascii
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Union

import httpx

from pixshop.core.config import Settings
from pixshop.core.errors import GenerationExhausted, GenerationFailed, InvalidInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedImage:
    data: bytes
    image_format: str
    model_id: str


@dataclass(frozen=True)
class AttemptFailure:
    model_id: str
    reason: str


AttemptResult = Union[GeneratedImage, AttemptFailure]


def infer_image_format(mime_type: str | None) -> str:
    """Map a declared mime type to a file format, defaulting to png."""
    if not mime_type or not isinstance(mime_type, str):
        return "png"
    mime_type = mime_type.lower()
    if "jpeg" in mime_type or "jpg" in mime_type:
        return "jpeg"
    if "gif" in mime_type:
        return "gif"
    if "webp" in mime_type:
        return "webp"
    return "png"


class GenerationGateway:
    """Calls the external generation APIs.

    Image generation walks the configured model list in order and returns the
    first usable prediction. Text generation is a single call.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.api_base = settings.google_api_base.rstrip("/")
        self.image_api_key = settings.google_ai_api_key
        self.text_api_key = settings.text_api_key
        self.image_models = list(settings.image_models)
        self.text_model = settings.text_model
        self.timeout = settings.generation_timeout_seconds
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def generate_image(
        self, prompt: str | None, reference_bytes: bytes | None = None
    ) -> GeneratedImage:
        if not prompt or not prompt.strip():
            raise InvalidInput("Prompt is required")
        if not self.image_api_key:
            raise GenerationFailed("Google AI API key not configured")

        instance: dict[str, Any] = {"prompt": prompt}
        if reference_bytes:
            instance["reference_image"] = {
                "bytesBase64Encoded": base64.b64encode(reference_bytes).decode("ascii")
            }

        failures: list[AttemptFailure] = []
        async with self._session() as client:
            for model_id in self.image_models:
                logger.info(f"Trying Imagen model: {model_id}")
                result = await self._attempt_image(client, model_id, instance)
                if isinstance(result, GeneratedImage):
                    logger.info(
                        f"Image generated with {model_id} "
                        f"({len(result.data)} bytes, {result.image_format})"
                    )
                    return result
                logger.warning(f"Imagen {model_id} failed: {result.reason}")
                failures.append(result)

        raise GenerationExhausted(
            "Image generation failed: all configured Imagen models failed.",
            failures=failures,
        )

    async def _attempt_image(
        self, client: httpx.AsyncClient, model_id: str, instance: dict[str, Any]
    ) -> AttemptResult:
        url = f"{self.api_base}/models/{model_id}:predict"
        try:
            response = await client.post(
                url,
                params={"key": self.image_api_key},
                json={"instances": [instance]},
                timeout=self.timeout,
            )
        except httpx.TimeoutException:
            return AttemptFailure(model_id, f"timed out after {self.timeout}s")
        except httpx.RequestError as e:
            return AttemptFailure(model_id, f"request failed: {e}")

        if not response.is_success:
            return AttemptFailure(
                model_id, f"HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            payload = response.json()
        except ValueError:
            return AttemptFailure(model_id, "response is not JSON")

        predictions = payload.get("predictions") if isinstance(payload, dict) else None
        if not isinstance(predictions, list) or not predictions:
            return AttemptFailure(model_id, "no predictions found in response")
        prediction = predictions[0]
        encoded = prediction.get("bytesBase64Encoded") if isinstance(prediction, dict) else None
        if not encoded or not isinstance(encoded, str):
            return AttemptFailure(model_id, "no bytesBase64Encoded in prediction")

        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            return AttemptFailure(model_id, "prediction payload is not valid base64")

        return GeneratedImage(
            data=data,
            image_format=infer_image_format(prediction.get("mimeType")),
            model_id=model_id,
        )

    async def generate_description(self, prompt: str | None) -> str:
        if not prompt or not prompt.strip():
            raise InvalidInput("Prompt is required")
        if not self.text_api_key:
            raise GenerationFailed("Google AI API key not configured")

        url = f"{self.api_base}/models/{self.text_model}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            async with self._session() as client:
                response = await client.post(
                    url,
                    params={"key": self.text_api_key},
                    json=body,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Description generation timed out: {e}")
            raise GenerationFailed(
                f"Description generation timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Description generation failed: {e}")
            raise GenerationFailed(
                f"Description generation failed: HTTP {e.response.status_code}"
            ) from e
        except (httpx.RequestError, ValueError) as e:
            logger.warning(f"Description generation failed: {e}")
            raise GenerationFailed(f"Description generation failed: {e}") from e

        text = _extract_text(payload)
        if not text:
            raise GenerationFailed("Description generation returned no text")
        logger.info(f"Description generated with {self.text_model} ({len(text)} chars)")
        return text


def _extract_text(payload: Any) -> str:
    """Join the text parts of the first candidate."""
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    texts = [
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    return "".join(texts).strip()
