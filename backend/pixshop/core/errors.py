"""Domain errors raised by services and translated to HTTP responses by routers."""

from __future__ import annotations

from fastapi import status


class PixshopError(Exception):
    """Base class; every subclass knows the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(PixshopError):
    status_code = status.HTTP_400_BAD_REQUEST


class UploadTooLarge(InvalidInput):
    pass


class NotFound(PixshopError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidSlot(PixshopError):
    status_code = status.HTTP_400_BAD_REQUEST


class GenerationFailed(PixshopError):
    pass


class GenerationExhausted(GenerationFailed):
    """Every configured image model failed."""

    def __init__(self, message: str, failures: list | None = None) -> None:
        super().__init__(message)
        self.failures = failures or []


class WriteFailed(PixshopError):
    pass


class PersistFailed(PixshopError):
    pass
