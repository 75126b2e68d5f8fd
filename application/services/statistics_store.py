import copy
import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from domain.models.quote import QuoteOutcome
from domain.models.statistics import ProviderStats, ServiceStats
from infrastructure.monitoring.logger import get_production_logger


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _running_mean(average: float, count: int, value: float) -> float:
    # count includes the new value
    return (average * (count - 1) + value) / count


class StatisticsStore:
    """
    Process-wide quote statistics, shared by every round.

    Each round is applied as one update under a single lock, so a snapshot
    never observes half of a round.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._lock = threading.Lock()
        now = self._clock()
        self._stats = ServiceStats(started_at=now, last_reset=now)
        self.production_logger = get_production_logger()

    def record_round(self, outcomes: Iterable[QuoteOutcome], total_elapsed_ms: float,
                     winner_name: str | None) -> None:
        outcomes = list(outcomes)
        round_succeeded = any(o.success for o in outcomes)
        errors = {
            o.provider_name: f'{o.error_kind.value}: {o.error_message}' for o in outcomes if not o.success
        }

        with self._lock:
            stats = self._stats
            stats.total_requests += 1
            if round_succeeded:
                stats.successful_requests += 1
            else:
                stats.failed_requests += 1
            stats.average_response_time_ms = _running_mean(
                stats.average_response_time_ms, stats.total_requests, total_elapsed_ms
            )

            for outcome in outcomes:
                provider = stats.providers.get(outcome.provider_name)
                if provider is None:
                    provider = stats.providers[outcome.provider_name] = ProviderStats(outcome.provider_name)

                provider.total_requests += 1
                if outcome.success:
                    provider.successful_requests += 1
                    provider.average_response_time_ms = _running_mean(
                        provider.average_response_time_ms, provider.successful_requests, outcome.elapsed_ms
                    )
                    provider.last_successful_response = outcome.observed_at
                else:
                    provider.last_error = errors[outcome.provider_name]

            if winner_name is not None:
                stats.providers[winner_name].best_offer_count += 1

    def snapshot(self) -> ServiceStats:
        with self._lock:
            return copy.deepcopy(self._stats)

    def reset(self) -> ServiceStats:
        with self._lock:
            discarded = self._stats.total_requests
            self._stats = ServiceStats(started_at=self._stats.started_at, last_reset=self._clock())
            stats = copy.deepcopy(self._stats)

        self.production_logger.log_statistics_reset(discarded, stats.last_reset)
        return stats
