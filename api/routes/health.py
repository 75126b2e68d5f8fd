from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_circuit_breakers, get_prober, get_toggles
from api.schemas import HealthResponse, ProviderHealthResponse
from application.services import HealthProber, ProviderToggles
from infrastructure.resilience import CircuitBreaker

router = APIRouter(prefix='/api/v1', tags=['health'])


@router.get('/health', response_model=HealthResponse, summary='Provider health check')
async def health_check(
    prober: Annotated[HealthProber, Depends(get_prober)],
    toggles: Annotated[ProviderToggles, Depends(get_toggles)],
    breakers: Annotated[dict[str, CircuitBreaker], Depends(get_circuit_breakers)],
) -> HealthResponse:
    """
    Probe every registered provider, enabled or not.

    Overall status is healthy when every provider answers, degraded when
    some do, and unhealthy when none do.
    """
    results = await prober.probe_all()

    providers = []
    for name, healthy in results.items():
        circuit = breakers[name].status()
        providers.append(ProviderHealthResponse(
            provider_name=name,
            healthy=healthy,
            enabled=toggles.is_enabled(name),
            circuit_state=circuit['state'],
            failure_count=circuit['failure_count'],
        ))

    healthy_count = sum(results.values())
    if healthy_count == len(results):
        overall = 'healthy'
    elif healthy_count:
        overall = 'degraded'
    else:
        overall = 'unhealthy'

    return HealthResponse(status=overall, timestamp=datetime.now(UTC), providers=providers)
