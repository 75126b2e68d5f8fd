from .health_prober import HealthProber
from .provider_toggles import ProviderToggles, ToggleResult
from .quote_aggregator import QuoteAggregator
from .service_container import ServiceContainer
from .statistics_store import StatisticsStore

__all__ = [
    'HealthProber',
    'ProviderToggles',
    'QuoteAggregator',
    'ServiceContainer',
    'StatisticsStore',
    'ToggleResult',
]
