from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta


@dataclass
class ProviderStats:
    provider_name: str
    total_requests: int = 0
    successful_requests: int = 0
    average_response_time_ms: float = 0.0  # successful responses only
    last_successful_response: datetime | None = None
    last_error: str | None = None
    best_offer_count: int = 0

    @property
    def failed_requests(self) -> int:
        return self.total_requests - self.successful_requests

    @property
    def success_rate(self) -> float:
        if not self.total_requests:
            return 0.0
        return self.successful_requests / self.total_requests * 100


@dataclass
class ServiceStats:
    started_at: datetime
    last_reset: datetime
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0  # rounds in which every provider failed
    average_response_time_ms: float = 0.0
    providers: dict[str, ProviderStats] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        if not self.total_requests:
            return 0.0
        return self.successful_requests / self.total_requests * 100

    @property
    def uptime(self) -> timedelta:
        return datetime.now(UTC) - self.started_at

    def best_offer_percentage(self, provider_name: str) -> float:
        provider = self.providers.get(provider_name)
        if provider is None or not self.total_requests:
            return 0.0
        return provider.best_offer_count / self.total_requests * 100
