from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_statistics_store
from api.schemas import ProviderStatisticsResponse, ResetResponse, StatisticsResponse
from application.services import StatisticsStore
from infrastructure.monitoring.logger import get_production_logger

router = APIRouter(prefix='/api/v1', tags=['statistics'])

production_logger = get_production_logger()


@router.get('/statistics', response_model=StatisticsResponse, summary='Aggregate and per-provider statistics')
async def get_statistics(
    store: Annotated[StatisticsStore, Depends(get_statistics_store)],
) -> StatisticsResponse:
    stats = store.snapshot()
    return StatisticsResponse(
        total_requests=stats.total_requests,
        successful_requests=stats.successful_requests,
        failed_requests=stats.failed_requests,
        success_rate=stats.success_rate,
        average_response_time_ms=stats.average_response_time_ms,
        started_at=stats.started_at,
        last_reset=stats.last_reset,
        uptime_seconds=stats.uptime.total_seconds(),
        providers=[
            ProviderStatisticsResponse(
                provider_name=p.provider_name,
                total_requests=p.total_requests,
                successful_requests=p.successful_requests,
                failed_requests=p.failed_requests,
                success_rate=p.success_rate,
                average_response_time_ms=p.average_response_time_ms,
                last_successful_response=p.last_successful_response,
                last_error=p.last_error,
                best_offer_count=p.best_offer_count,
                best_offer_percentage=stats.best_offer_percentage(p.provider_name),
            )
            for p in stats.providers.values()
        ],
    )


@router.post('/admin/statistics/reset', response_model=ResetResponse, summary='Reset all statistics')
async def reset_statistics(
    store: Annotated[StatisticsStore, Depends(get_statistics_store)],
) -> ResetResponse:
    stats = store.reset()
    production_logger.log_admin_action('reset_statistics', {'last_reset': stats.last_reset})
    return ResetResponse(message='Statistics reset', last_reset=stats.last_reset)
