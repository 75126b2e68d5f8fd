from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_container
from api.main import app
from application.services import ServiceContainer
from config.settings import get_settings


@pytest.fixture
def provider_clients():
    """One mocked transport per provider, answering a 100 USD->EUR quote."""
    api1 = AsyncMock(spec=httpx.AsyncClient)
    api1.post.return_value = httpx.Response(200, json={'rate': 0.85})
    api1.get.return_value = httpx.Response(200)

    api2 = AsyncMock(spec=httpx.AsyncClient)
    api2.post.return_value = httpx.Response(200, text='<XML><Result>87.00</Result></XML>')
    api2.get.return_value = httpx.Response(200)

    api3 = AsyncMock(spec=httpx.AsyncClient)
    api3.post.return_value = httpx.Response(
        200, json={'statusCode': 200, 'message': 'ok', 'data': {'total': 86.0}}
    )
    api3.get.return_value = httpx.Response(200)

    return {'API1': api1, 'API2': api2, 'API3': api3}


@pytest.fixture
def container(app_settings, provider_clients):
    return ServiceContainer.build(app_settings, clients=provider_clients)


@pytest.fixture
def client(container, app_settings):
    """Create test client with a container built on mocked transports."""
    app.dependency_overrides[get_container] = lambda: container
    app.dependency_overrides[get_settings] = lambda: app_settings
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
