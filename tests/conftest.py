"""
Shared test configuration and fixtures.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from config.settings import AuthType, ProviderSettings, Settings, WireFormat
from domain.models.quote import QuoteRequest
from infrastructure.providers.base import QuoteProvider


@pytest.fixture
def quote_request():
    return QuoteRequest('USD', 'EUR', Decimal('100'))


@pytest.fixture
def mock_client():
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def json_settings():
    return ProviderSettings(
        name='API1', base_url='http://api1.test', wire_format=WireFormat.JSON, api_key='key-1'
    )


@pytest.fixture
def xml_settings():
    return ProviderSettings(
        name='API2', base_url='http://api2.test/', wire_format=WireFormat.XML, api_key='key-2'
    )


@pytest.fixture
def nested_settings():
    return ProviderSettings(
        name='API3',
        base_url='http://api3.test',
        wire_format=WireFormat.NESTED_JSON,
        auth_type=AuthType.BASIC,
        api_key='user-3',
        api_secret='secret-3',
    )


@pytest.fixture
def app_settings(json_settings, xml_settings, nested_settings):
    return Settings(
        _env_file=None,
        PROVIDERS=[json_settings, xml_settings, nested_settings],
        RETRY_ATTEMPTS=2,
        RETRY_BACKOFF_SECONDS=0,
        RETRY_BACKOFF_MAX_SECONDS=0,
        LOG_TO_FILE=False,
    )


@pytest.fixture
def make_provider():
    """
    Build a stub adapter whose fetch_quote yields the given outcomes in turn.

    A callable or an exception is used as the side effect instead.
    """
    def _make(name: str, *outcomes, enabled: bool = True):
        provider = Mock(spec=QuoteProvider)
        provider.name = name
        provider.enabled = enabled
        if len(outcomes) == 1 and (callable(outcomes[0]) or isinstance(outcomes[0], BaseException)):
            provider.fetch_quote = AsyncMock(side_effect=outcomes[0])
        elif len(outcomes) == 1:
            provider.fetch_quote = AsyncMock(return_value=outcomes[0])
        else:
            provider.fetch_quote = AsyncMock(side_effect=list(outcomes))
        provider.probe = AsyncMock(return_value=True)
        return provider

    return _make
