import asyncio
import logging
import time
from collections.abc import Mapping, Sequence

from application.services.statistics_store import StatisticsStore
from domain.exceptions.quote import AllProvidersFailedError, NoProvidersEnabledError
from domain.models.quote import AggregationResult, ErrorKind, QuoteOutcome, QuoteRequest
from infrastructure.monitoring.logger import get_production_logger
from infrastructure.providers.credentials import ProviderCredentials
from infrastructure.resilience.resilient_provider import ResilientProvider

logger = logging.getLogger(__name__)


def select_best(outcomes: Sequence[QuoteOutcome]) -> QuoteOutcome | None:
    """Highest converted amount wins; on a tie the earlier outcome is kept."""
    best = None
    for outcome in outcomes:
        if outcome.success and (best is None or outcome.converted_amount > best.converted_amount):
            best = outcome
    return best


class QuoteAggregator:
    """Orchestrates all enabled providers for one quote round"""

    def __init__(self, providers: Sequence[ResilientProvider], statistics: StatisticsStore):
        self.providers = list(providers)
        self.statistics = statistics
        self.production_logger = get_production_logger()

    async def quote(
        self,
        request: QuoteRequest,
        credentials: Mapping[str, ProviderCredentials] | None = None,
        deadline: float | None = None,
    ) -> AggregationResult:
        """
        Ask every enabled provider concurrently and return the best offer:
        1. Snapshot which providers are enabled
        2. Fan out one task per provider and wait for all of them
        3. Select the highest converted amount
        4. Record the round in the statistics store
        """
        enabled = [provider for provider in self.providers if provider.enabled]
        if not enabled:
            raise NoProvidersEnabledError()

        credentials = credentials or {}
        start_time = time.perf_counter()

        tasks = [
            asyncio.create_task(
                provider.call(request, credentials.get(provider.name), deadline),
                name=f'quote-{provider.name}',
            )
            for provider in enabled
        ]

        try:
            outcomes = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            await self._cancel_all(enabled, tasks)
            raise

        total_elapsed_ms = (time.perf_counter() - start_time) * 1000
        best = select_best(outcomes)

        self.statistics.record_round(outcomes, total_elapsed_ms, best.provider_name if best else None)

        failures = {
            o.provider_name: f'{o.error_kind.value}: {o.error_message}' for o in outcomes if not o.success
        }
        self.production_logger.log_quote_round(
            source=request.source_currency,
            target=request.target_currency,
            amount=request.amount,
            best_provider=best.provider_name if best else None,
            successful=len(outcomes) - len(failures),
            total=len(outcomes),
            total_duration_ms=total_elapsed_ms,
            failures=failures or None,
        )

        if best is None:
            raise AllProvidersFailedError(failures)

        result = AggregationResult(
            best_outcome=best,
            all_outcomes=tuple(outcomes),
            total_elapsed_ms=total_elapsed_ms,
        )
        logger.info(result.summary())
        return result

    async def _cancel_all(self, providers: list[ResilientProvider], tasks: list[asyncio.Task]) -> None:
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for provider, result in zip(providers, results, strict=True):
            if isinstance(result, BaseException):
                self.production_logger.log_provider_call(
                    provider_name=provider.name,
                    success=False,
                    elapsed_ms=0.0,
                    error_kind=ErrorKind.CANCELLED.value,
                    error_message='Quote round cancelled by caller',
                )
        logger.warning(f'Quote round cancelled with {len(tasks)} provider call(s) in flight')
