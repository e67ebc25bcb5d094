"""Shared fixtures: SQLite-backed settings, sessions, seeded products."""

import base64
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from pixshop.core.config import Settings
from pixshop.db.models.product import Product, ProductStatus
from pixshop.db.session import build_engine, build_session_factory, init_db
from pixshop.main import create_app
from pixshop.services.sku_lock import SkuLock
from pixshop.storage.asset_store import AssetStore


def png_data_url(payload: bytes = b"\x89PNG fake image bytes") -> str:
    return "data:image/png;base64," + base64.b64encode(payload).decode("ascii")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'pixshop.db'}",
        redis_url=None,
        google_ai_api_key="test-key",
        image_models_raw="model-a,model-b",
        text_model="text-model",
        public_base_url="http://testserver/",
        images_dir=str(tmp_path / "images"),
        uploads_dir=str(tmp_path / "uploads"),
        record_generations=True,
    )


@pytest.fixture
def session_factory(settings):
    engine = build_engine(settings.database_url)
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_product(db):
    def _make(sku: int = 1001, **fields) -> Product:
        product = Product(
            sku=sku,
            status=ProductStatus.PENDING.value,
            category="Rings",
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            **fields,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def assets(settings) -> AssetStore:
    return AssetStore(settings.images_dir, settings.public_base_url)


@pytest.fixture
def no_lock() -> SkuLock:
    return SkuLock(None)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seed_product(app, client):
    """Insert products through the app's own engine."""

    def _seed(sku: int = 1001, **fields) -> None:
        session = app.state.session_factory()
        try:
            session.add(
                Product(
                    sku=sku,
                    status=ProductStatus.PENDING.value,
                    created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                    **fields,
                )
            )
            session.commit()
        finally:
            session.close()

    return _seed
