"""Shared test fixtures."""

import os
from collections.abc import AsyncGenerator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-jwt")
os.environ.setdefault("BACKEND_API_URL", "http://backend.test")

from portal.core.config import settings  # noqa: E402
from portal.core.security import create_access_token  # noqa: E402
from portal.main import app  # noqa: E402
from portal.services.backend_client import BackendClient  # noqa: E402
from portal.services.inflight import LocalInFlightGuard  # noqa: E402
from portal.services.locations import LocationDirectory  # noqa: E402
from portal.services.session import SessionRegistry  # noqa: E402
from tests.fake_backend import ADMIN, DONOR, VOLUNTEER, FakeBackend  # noqa: E402


@pytest.fixture(scope="session")
def locations() -> LocationDirectory:
    return LocationDirectory.from_dir(settings.LOCATIONS_DIR)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def backend(fake_backend: FakeBackend) -> AsyncGenerator[BackendClient, None]:
    """BackendClient wired to the in-memory fake."""
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(fake_backend.handler),
        base_url=settings.BACKEND_API_URL,
    )
    client = BackendClient(http)
    yield client
    await client.aclose()


@pytest.fixture
async def client(
    backend: BackendClient, locations: LocationDirectory
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client for the FastAPI app.

    ASGITransport does not run the lifespan, so the state it would build is
    installed here with a fresh session registry and in-flight guard per test.
    """
    app.state.backend = backend
    app.state.sessions = SessionRegistry()
    app.state.inflight = LocalInFlightGuard()
    app.state.locations = locations
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.state.sessions.clear()


def make_token(email: str = DONOR) -> str:
    """Generate a backend-shaped JWT for testing."""
    return create_access_token(email=email, secret=settings.JWT_SECRET)


def auth_headers(email: str = DONOR) -> dict:
    """Return Authorization headers with a backend-shaped JWT."""
    return {"Authorization": f"Bearer {make_token(email)}"}


@pytest.fixture
def donor_headers() -> dict:
    return auth_headers(DONOR)


@pytest.fixture
def admin_headers() -> dict:
    return auth_headers(ADMIN)


@pytest.fixture
def volunteer_headers() -> dict:
    return auth_headers(VOLUNTEER)
