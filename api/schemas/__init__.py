from .requests import BestQuoteRequest, BulkToggleRequest, ToggleProviderRequest
from .responses import (
    BestQuoteResponse,
    CurrencyResponse,
    HealthResponse,
    ProviderHealthResponse,
    ProviderStatisticsResponse,
    ProviderStatusResponse,
    QuoteOutcomeResponse,
    ResetResponse,
    ServiceInfoResponse,
    StatisticsResponse,
    SupportedCurrenciesResponse,
    ToggleResponse,
)

__all__ = [
    'BestQuoteRequest',
    'BestQuoteResponse',
    'BulkToggleRequest',
    'CurrencyResponse',
    'HealthResponse',
    'ProviderHealthResponse',
    'ProviderStatisticsResponse',
    'ProviderStatusResponse',
    'QuoteOutcomeResponse',
    'ResetResponse',
    'ServiceInfoResponse',
    'StatisticsResponse',
    'SupportedCurrenciesResponse',
    'ToggleProviderRequest',
    'ToggleResponse',
]
