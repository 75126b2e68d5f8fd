import asyncio
import time
from typing import Annotated

from fastapi import APIRouter, Depends, status

from api.dependencies import get_aggregator, get_request_credentials
from api.schemas import BestQuoteRequest, BestQuoteResponse, QuoteOutcomeResponse
from application.services import QuoteAggregator
from config.settings import Settings, get_settings
from domain.exceptions.quote import QuoteError
from domain.models.quote import QuoteOutcome, QuoteRequest
from infrastructure.monitoring.logger import get_production_logger
from infrastructure.providers import ProviderCredentials

router = APIRouter(prefix='/api/v1', tags=['quotes'])

production_logger = get_production_logger()


def _outcome_response(outcome: QuoteOutcome) -> QuoteOutcomeResponse:
    return QuoteOutcomeResponse(
        provider_name=outcome.provider_name,
        success=outcome.success,
        rate=outcome.rate,
        converted_amount=outcome.converted_amount,
        error_kind=outcome.error_kind.value if outcome.error_kind else None,
        error_message=outcome.error_message,
        elapsed_ms=outcome.elapsed_ms,
        observed_at=outcome.observed_at,
    )


@router.post(
    '/quotes/best',
    response_model=BestQuoteResponse,
    status_code=status.HTTP_200_OK,
    summary='Get the best quote across all enabled providers',
)
async def get_best_quote(
    body: BestQuoteRequest,
    aggregator: Annotated[QuoteAggregator, Depends(get_aggregator)],
    credentials: Annotated[dict[str, ProviderCredentials], Depends(get_request_credentials)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> BestQuoteResponse:
    start_time = time.perf_counter()
    request_data = body.model_dump(mode='json')

    deadline = None
    if settings.QUOTE_DEADLINE_SECONDS is not None:
        deadline = asyncio.get_running_loop().time() + settings.QUOTE_DEADLINE_SECONDS

    try:
        request = QuoteRequest(body.source_currency, body.target_currency, body.amount)
        result = await aggregator.quote(request, credentials, deadline)
    except QuoteError as e:
        production_logger.log_user_request(
            endpoint='/api/v1/quotes/best',
            request_data=request_data,
            success=False,
            response_time_ms=(time.perf_counter() - start_time) * 1000,
            error_message=str(e),
        )
        raise

    production_logger.log_user_request(
        endpoint='/api/v1/quotes/best',
        request_data=request_data,
        success=True,
        response_time_ms=(time.perf_counter() - start_time) * 1000,
    )

    best = result.best_outcome
    return BestQuoteResponse(
        source_currency=request.source_currency,
        target_currency=request.target_currency,
        amount=request.amount,
        best_provider=best.provider_name,
        rate=best.rate,
        converted_amount=best.converted_amount,
        average_rate=result.average_rate,
        successful_providers=result.successful_count,
        failed_providers=result.failed_count,
        total_providers=result.total_count,
        total_elapsed_ms=result.total_elapsed_ms,
        produced_at=result.produced_at,
        outcomes=[_outcome_response(o) for o in result.all_outcomes],
    )
