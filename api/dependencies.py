import logging
from typing import Annotated

from fastapi import Depends, Request

from application.services import HealthProber, ProviderToggles, QuoteAggregator, ServiceContainer, StatisticsStore
from config.settings import Settings, get_settings
from infrastructure.providers import ProviderCredentials
from infrastructure.resilience import CircuitBreaker

logger = logging.getLogger(__name__)


class AppDependencies:
    """Container for application-wide singleton dependencies."""

    container: ServiceContainer | None = None


deps = AppDependencies()


def init_dependencies(settings: Settings | None = None) -> ServiceContainer:
    """Initialize all singleton dependencies. Called at app startup."""
    logger.info('Initializing dependencies...')
    deps.container = ServiceContainer.build(settings or get_settings())
    logger.info('Dependencies initialized')
    return deps.container


async def cleanup_dependencies() -> None:
    logger.info('Cleaning up dependencies...')
    if deps.container:
        await deps.container.aclose()
        deps.container = None
    logger.info('Cleanup complete')


def get_container() -> ServiceContainer:
    if deps.container is None:
        raise RuntimeError('Services not initialized')
    return deps.container


def get_aggregator(container: Annotated[ServiceContainer, Depends(get_container)]) -> QuoteAggregator:
    return container.aggregator


def get_statistics_store(container: Annotated[ServiceContainer, Depends(get_container)]) -> StatisticsStore:
    return container.statistics


def get_toggles(container: Annotated[ServiceContainer, Depends(get_container)]) -> ProviderToggles:
    return container.toggles


def get_prober(container: Annotated[ServiceContainer, Depends(get_container)]) -> HealthProber:
    return container.prober


def get_circuit_breakers(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict[str, CircuitBreaker]:
    return container.circuit_breakers


def get_request_credentials(
    request: Request,
    toggles: Annotated[ProviderToggles, Depends(get_toggles)],
) -> dict[str, ProviderCredentials]:
    """
    Read per-request provider credentials from headers.

    `X-<PROVIDER>-Key`, `X-<PROVIDER>-Secret` and `X-<PROVIDER>-Token` map to
    the api key, api secret and bearer token of that provider. Header names are
    case-insensitive, so `X-API1-Key` and `x-api1-key` are the same.
    """
    credentials: dict[str, ProviderCredentials] = {}
    for name in toggles.provider_names:
        prefix = f'x-{name.lower()}'
        found = ProviderCredentials(
            api_key=request.headers.get(f'{prefix}-key'),
            api_secret=request.headers.get(f'{prefix}-secret'),
            bearer_token=request.headers.get(f'{prefix}-token'),
        )
        if found != ProviderCredentials():
            credentials[name] = found
    return credentials
