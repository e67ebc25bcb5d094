"""FastAPI application bootstrap."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from pixshop.api.routers import generation, health, products
from pixshop.core.config import Settings, get_settings
from pixshop.db.session import build_engine, build_session_factory, init_db
from pixshop.services.generation_gateway import GenerationGateway
from pixshop.services.sku_lock import SkuLock
from pixshop.storage.asset_store import IMAGES_URL_PATH, AssetStore
from pixshop.utils.redis_client import create_redis_client

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as ``{"error": ...}`` for the client status line."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "request"
    message = f"Invalid {field}: {first.get('msg', 'malformed request')}"
    logger.info(f"Rejected request to {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Unhandled database error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Database error"},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app and every component it needs from one settings object."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        logger.info("Database initialized.")
        yield
        engine.dispose()

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.asset_store = AssetStore(settings.images_dir, settings.public_base_url)
    app.state.generation_gateway = GenerationGateway(settings)
    redis_client = (
        create_redis_client(settings.redis_url, socket_connect_timeout=2)
        if settings.redis_url
        else None
    )
    app.state.sku_lock = SkuLock(
        redis_client,
        ttl_seconds=settings.sku_lock_ttl_seconds,
        wait_seconds=settings.sku_lock_wait_seconds,
    )

    logger.info(f"[CORS] Allowed origins: {settings.cors_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Model-Used", "X-Image-Size"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    app.include_router(health.router)
    app.include_router(generation.router, prefix="/api", tags=["generation"])
    app.include_router(products.router, prefix="/api", tags=["products"])
    app.mount(
        IMAGES_URL_PATH,
        StaticFiles(directory=settings.images_dir),
        name="images",
    )

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
