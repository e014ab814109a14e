"""
Shared pytest fixtures available to every test file automatically.
No imports needed in test files; pytest discovers this by convention.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from tortoise import Tortoise

from app.allocator import IdentifierAllocator
from app.crud import BookingCRUD, CustomerCRUD, PaymentCRUD
from app.deps import can_read_consolidated, get_current_user
from app.main import TORTOISE_MODULES, install_exception_handlers
from app.routers import admin, booking
from app.storage import get_blob_store

from .factories import ATTACHMENT_REF, make_admin, make_report_reader

# ---------------------------------------------------------------------------
# Database fixtures: fresh in-memory SQLite per test
# ---------------------------------------------------------------------------


@pytest.fixture()
async def db():
    await Tortoise.init(db_url="sqlite://:memory:", modules=TORTOISE_MODULES)
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture()
def allocator() -> IdentifierAllocator:
    """A private allocator so its locks never outlive the test's event loop."""
    return IdentifierAllocator()


@pytest.fixture()
def stores(db, allocator):
    return SimpleNamespace(
        bookings=BookingCRUD(allocator),
        customers=CustomerCRUD(allocator),
        payments=PaymentCRUD(allocator),
    )


# ---------------------------------------------------------------------------
# Cache: never talk to a real Redis from tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def cache_mocks(monkeypatch):
    mocks = SimpleNamespace(
        get=AsyncMock(return_value=(None, 0)),
        set=AsyncMock(),
        invalidate=AsyncMock(),
    )
    monkeypatch.setattr("app.routers.admin.get_consolidated_cache", mocks.get)
    monkeypatch.setattr("app.routers.admin.set_consolidated_cache", mocks.set)
    monkeypatch.setattr(
        "app.routers.booking.invalidate_consolidated_cache", mocks.invalidate
    )
    return mocks


# ---------------------------------------------------------------------------
# App builder: used by all client fixtures
# ---------------------------------------------------------------------------


def _noop_blob_store():
    mock = MagicMock()
    mock.save = AsyncMock(return_value=ATTACHMENT_REF)
    return mock


def build_app(current_user=None, blob_store=None) -> FastAPI:
    """
    Fresh FastAPI app with the admin gate overridden to return `current_user`
    unconditionally (when given) and the blob store replaced by a mock.
    """
    app = FastAPI()
    app.include_router(booking.router)
    app.include_router(admin.router)
    install_exception_handlers(app)

    if current_user is not None:

        async def _user():
            return current_user

        for dep in (can_read_consolidated, get_current_user):
            app.dependency_overrides[dep] = _user

    bs = blob_store if blob_store is not None else _noop_blob_store()
    app.dependency_overrides[get_blob_store] = lambda: bs
    return app


# ---------------------------------------------------------------------------
# Reusable client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def public_client():
    """Wizard client: no identity headers at all."""
    return TestClient(build_app(), raise_server_exceptions=True)


@pytest.fixture()
def admin_client():
    return TestClient(build_app(make_admin()), raise_server_exceptions=True)


@pytest.fixture()
def reader_client():
    return TestClient(build_app(make_report_reader()), raise_server_exceptions=True)


@pytest.fixture()
def anon_app():
    """
    App with NO auth overrides.
    Use this when you want real gate deps to run so you can assert 401/403/422.
    """
    return build_app()


@pytest.fixture()
def client_factory():
    def _make(current_user=None, blob_store=None) -> TestClient:
        return TestClient(
            build_app(current_user, blob_store=blob_store),
            raise_server_exceptions=True,
        )

    return _make
