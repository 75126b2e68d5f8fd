from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class QuoteOutcomeResponse(BaseModel):
    provider_name: str
    success: bool
    rate: Decimal | None = None
    converted_amount: Decimal | None = None
    error_kind: str | None = None
    error_message: str | None = None
    elapsed_ms: float
    observed_at: datetime


class BestQuoteResponse(BaseModel):
    source_currency: str = Field(..., description='Source currency code')
    target_currency: str = Field(..., description='Target currency code')
    amount: Decimal = Field(..., description='Amount requested')
    best_provider: str = Field(..., description='Provider with the highest converted amount')
    rate: Decimal = Field(..., description='Exchange rate of the best offer')
    converted_amount: Decimal = Field(..., description='Converted amount of the best offer')
    average_rate: Decimal = Field(..., description='Mean rate across successful providers')
    successful_providers: int
    failed_providers: int
    total_providers: int
    total_elapsed_ms: float
    produced_at: datetime
    outcomes: list[QuoteOutcomeResponse]

    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'source_currency': 'USD',
                'target_currency': 'EUR',
                'amount': 100.00,
                'best_provider': 'API2',
                'rate': 0.87,
                'converted_amount': 87.00,
                'average_rate': 0.86,
                'successful_providers': 2,
                'failed_providers': 1,
                'total_providers': 3,
            }
        }
    )


class ProviderStatisticsResponse(BaseModel):
    provider_name: str
    total_requests: int
    successful_requests: int
    failed_requests: int
    success_rate: float
    average_response_time_ms: float
    last_successful_response: datetime | None
    last_error: str | None
    best_offer_count: int
    best_offer_percentage: float


class StatisticsResponse(BaseModel):
    total_requests: int
    successful_requests: int
    failed_requests: int
    success_rate: float
    average_response_time_ms: float
    started_at: datetime
    last_reset: datetime
    uptime_seconds: float
    providers: list[ProviderStatisticsResponse]


class ProviderHealthResponse(BaseModel):
    provider_name: str
    healthy: bool
    enabled: bool
    circuit_state: str
    failure_count: int


class HealthResponse(BaseModel):
    status: str = Field(..., description='healthy, degraded or unhealthy')
    timestamp: datetime
    providers: list[ProviderHealthResponse]


class ToggleResponse(BaseModel):
    provider_name: str
    enabled: bool
    success: bool
    error_message: str | None = None


class ProviderStatusResponse(BaseModel):
    provider_name: str
    enabled: bool
    circuit: dict


class ResetResponse(BaseModel):
    message: str
    last_reset: datetime


class CurrencyResponse(BaseModel):
    code: str = Field(..., description='ISO 4217 currency code')
    name: str
    symbol: str
    country: str


class SupportedCurrenciesResponse(BaseModel):
    currencies: list[CurrencyResponse]
    total_currencies: int
    generated_at: datetime

    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'currencies': [{'code': 'USD', 'name': 'US Dollar', 'symbol': '$', 'country': 'United States'}],
                'total_currencies': 1,
            }
        }
    )


class ServiceInfoResponse(BaseModel):
    service: str
    version: str
    environment: str
    timestamp: datetime
    endpoints: dict[str, str] = Field(..., description='Endpoint name to method and path')
