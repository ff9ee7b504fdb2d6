"""Pytest configuration and fixtures.

Cosmos DB containers are replaced by tests.helpers.fake_cosmos.FakeContainer,
both when calling services directly and through the FastAPI app.
"""

import os
import uuid

# pickup_api.db reads these at import time
os.environ.setdefault("COSMOSDB_ENDPOINT", "https://localhost:8081")
os.environ.setdefault("COSMOSDB_DATABASE", "pickup-test")
os.environ.setdefault("COSMOSDB_CONTAINER_PICKUP_LOCATIONS", "pickup-locations")
os.environ.setdefault("COSMOSDB_CONTAINER_USERS", "users")
os.environ.setdefault("COSMOSDB_CONTAINER_LOGIN_CODES", "login-codes")
os.environ.setdefault("COSMOSDB_CONTAINER_REGIONS", "regions")

import pytest
from httpx import ASGITransport, AsyncClient

from function_app import app
from pickup_api.routes import dependencies
from pickup_api.services.login_code_service import LoginCodeIssuer
from pickup_api.services.pickup_location_service import PickupLocationService
from tests.helpers.fake_cosmos import FakeContainer, RecordingNotifier

REGION_ID = "3f2b8c1e-6a4d-4e8b-9c7a-1d2e3f4a5b6c"
REGION_NAME = "Lagos Mainland"


def make_user(role="admin", email=None, **fields):
    """Stored user document with sensible defaults."""
    user = {
        "id": str(uuid.uuid4()),
        "firstName": "Ada",
        "lastName": "Okafor",
        "email": email or f"user-{uuid.uuid4().hex[:8]}@surespot.app",
        "role": role,
        "isEmailVerified": True,
        "isActive": True,
    }
    user.update(fields)
    return user


def location_payload(**overrides):
    payload = {
        "name": "Surespot, Iba, Ojo",
        "address": "123 Main Street, Iba, Ojo, Lagos",
        "latitude": 6.5244,
        "longitude": 3.3792,
        "regionId": REGION_ID,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def locations() -> FakeContainer:
    return FakeContainer()


@pytest.fixture
def users() -> FakeContainer:
    return FakeContainer()


@pytest.fixture
def regions() -> FakeContainer:
    container = FakeContainer()
    container.seed({"id": REGION_ID, "name": REGION_NAME})
    return container


@pytest.fixture
def login_codes() -> FakeContainer:
    return FakeContainer()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(locations, users, regions, login_codes, notifier) -> PickupLocationService:
    return PickupLocationService(
        locations=locations,
        users=users,
        regions=regions,
        login_codes=LoginCodeIssuer(login_codes, notifier),
    )


@pytest.fixture
async def client(locations, users, regions, login_codes, notifier) -> AsyncClient:
    """Async HTTP client against the FastAPI app with fake containers."""

    app.dependency_overrides = {
        dependencies.get_pickup_locations_container: lambda: locations,
        dependencies.get_users_container: lambda: users,
        dependencies.get_regions_container: lambda: regions,
        dependencies.get_login_codes_container: lambda: login_codes,
        dependencies.get_login_code_notifier: lambda: notifier,
    }
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"x-functions-key": "test-key"},
    ) as ac:
        yield ac
    app.dependency_overrides = {}
