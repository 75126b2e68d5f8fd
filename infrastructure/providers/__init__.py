from collections.abc import Callable

import httpx

from config.settings import ProviderSettings, WireFormat

from .base import InvalidResponseError, QuoteProvider
from .credentials import ProviderCredentials
from .json_api import JsonQuoteProvider
from .nested_json_api import NestedJsonQuoteProvider
from .xml_api import XmlQuoteProvider

PROVIDER_TYPES: dict[WireFormat, type[QuoteProvider]] = {
    WireFormat.JSON: JsonQuoteProvider,
    WireFormat.XML: XmlQuoteProvider,
    WireFormat.NESTED_JSON: NestedJsonQuoteProvider,
}


def create_provider(
    settings: ProviderSettings,
    client: httpx.AsyncClient | None = None,
    is_enabled: Callable[[str], bool] | None = None,
) -> QuoteProvider:
    return PROVIDER_TYPES[settings.wire_format](settings, client=client, is_enabled=is_enabled)


__all__ = [
    'InvalidResponseError',
    'JsonQuoteProvider',
    'NestedJsonQuoteProvider',
    'ProviderCredentials',
    'QuoteProvider',
    'XmlQuoteProvider',
    'create_provider',
]
