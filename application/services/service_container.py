import logging
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from application.services.health_prober import HealthProber
from application.services.provider_toggles import ProviderToggles
from application.services.quote_aggregator import QuoteAggregator
from application.services.statistics_store import StatisticsStore
from config.settings import Settings
from infrastructure.providers import QuoteProvider, create_provider
from infrastructure.resilience import CircuitBreaker, ResilientProvider

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Wires up every service once at startup, in provider registration order"""

    settings: Settings
    providers: list[QuoteProvider]
    circuit_breakers: dict[str, CircuitBreaker]
    resilient_providers: list[ResilientProvider]
    statistics: StatisticsStore
    toggles: ProviderToggles
    aggregator: QuoteAggregator
    prober: HealthProber

    @classmethod
    def build(cls, settings: Settings,
              clients: Mapping[str, httpx.AsyncClient] | None = None) -> 'ServiceContainer':
        clients = clients or {}

        names = [p.name for p in settings.PROVIDERS]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f'Duplicate provider names in configuration: {sorted(duplicates)}')

        toggles = ProviderToggles({p.name: p.enabled for p in settings.PROVIDERS})

        providers: list[QuoteProvider] = []
        circuit_breakers: dict[str, CircuitBreaker] = {}
        resilient_providers: list[ResilientProvider] = []

        for provider_settings in settings.PROVIDERS:
            provider = create_provider(
                provider_settings,
                client=clients.get(provider_settings.name),
                is_enabled=toggles.is_enabled,
            )
            breaker = CircuitBreaker(
                provider_name=provider.name,
                failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD,
                recovery_timeout=settings.CIRCUIT_COOLDOWN_SECONDS,
            )
            providers.append(provider)
            circuit_breakers[provider.name] = breaker
            resilient_providers.append(ResilientProvider(
                provider,
                breaker,
                timeout_seconds=provider_settings.timeout_seconds,
                retry_attempts=settings.RETRY_ATTEMPTS,
                backoff_seconds=settings.RETRY_BACKOFF_SECONDS,
                backoff_max_seconds=settings.RETRY_BACKOFF_MAX_SECONDS,
            ))
            logger.info(f'Registered provider {provider.name} ({provider_settings.wire_format.value})')

        statistics = StatisticsStore()
        return cls(
            settings=settings,
            providers=providers,
            circuit_breakers=circuit_breakers,
            resilient_providers=resilient_providers,
            statistics=statistics,
            toggles=toggles,
            aggregator=QuoteAggregator(resilient_providers, statistics),
            prober=HealthProber(providers, probe_timeout=settings.HEALTH_PROBE_TIMEOUT_SECONDS),
        )

    async def aclose(self) -> None:
        for provider in self.providers:
            await provider.close()
        logger.info('Provider clients closed')
