from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.business_config import BusinessConfig
from app.db import Base
from app.deps import config_dep, session_dep
from app.main import app


@pytest.fixture
def engine():
    """In-memory SQLite shared across connections, fresh schema per test."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def config() -> BusinessConfig:
    return BusinessConfig()


@pytest.fixture
def client(session_factory, config) -> Generator[TestClient, None, None]:
    def _session_override() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[session_dep] = _session_override
    app.dependency_overrides[config_dep] = lambda: config
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_variant(client):
    """Register a product with one variant and return its barcode."""

    def _make(barcode: str = "SKU-001", name: str = "Green tea") -> str:
        res = client.post(
            "/products",
            json={"name": name, "variants": [{"barcode": barcode, "variant_name": "500g"}]},
        )
        assert res.status_code == 200, res.text
        return res.json()["variants"][0]["barcode"]

    return _make


@pytest.fixture
def receive(client):
    def _receive(barcode: str, expiry: str, qty: int) -> dict:
        res = client.post(
            "/movements/inbound",
            json={"barcode": barcode, "expiry_date": expiry, "qty": qty},
        )
        assert res.status_code == 200, res.text
        return res.json()

    return _receive
