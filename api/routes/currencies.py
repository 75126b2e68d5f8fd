from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status

from api.schemas import CurrencyResponse, ServiceInfoResponse, SupportedCurrenciesResponse
from config.settings import Settings, get_settings
from domain.models.currency import SUPPORTED_CURRENCIES

router = APIRouter(prefix='/api/v1', tags=['reference'])

ENDPOINTS = {
    'documentation': 'GET /docs',
    'health': 'GET /api/v1/health',
    'best_quote': 'POST /api/v1/quotes/best',
    'statistics': 'GET /api/v1/statistics',
    'currencies': 'GET /api/v1/currencies',
    'providers': 'GET /api/v1/admin/providers',
}


@router.get(
    '/currencies',
    response_model=SupportedCurrenciesResponse,
    status_code=status.HTTP_200_OK,
    summary='List supported currencies',
)
async def get_supported_currencies() -> SupportedCurrenciesResponse:
    currencies = [
        CurrencyResponse(code=c.code, name=c.name, symbol=c.symbol, country=c.country)
        for c in SUPPORTED_CURRENCIES
    ]
    return SupportedCurrenciesResponse(
        currencies=currencies,
        total_currencies=len(currencies),
        generated_at=datetime.now(UTC),
    )


@router.get('/info', response_model=ServiceInfoResponse, summary='Service name, version and endpoints')
async def get_service_info(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ServiceInfoResponse:
    return ServiceInfoResponse(
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        timestamp=datetime.now(UTC),
        endpoints=ENDPOINTS,
    )
