import asyncio
import logging
import time
from dataclasses import replace

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt, wait_exponential

from domain.models.quote import ErrorKind, QuoteOutcome, QuoteRequest
from infrastructure.monitoring.logger import get_production_logger
from infrastructure.providers.base import QuoteProvider
from infrastructure.providers.credentials import ProviderCredentials
from infrastructure.resilience.circuit_breaker import CircuitBreaker, CircuitBreakerError, CircuitState

logger = logging.getLogger(__name__)


class ResilientProvider:
    """
    Wraps one QuoteProvider with a per-attempt timeout, bounded retry of
    transient failures and a circuit breaker that sees every attempt.

    `call` never raises for provider failures; it always resolves to a
    QuoteOutcome whose `elapsed_ms` covers every attempt and backoff.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        breaker: CircuitBreaker,
        timeout_seconds: float,
        retry_attempts: int = 2,
        backoff_seconds: float = 2.0,
        backoff_max_seconds: float = 10.0,
    ):
        self.provider = provider
        self.breaker = breaker
        self.timeout_seconds = timeout_seconds
        self.retry_attempts = retry_attempts
        self.backoff_seconds = backoff_seconds
        self.backoff_max_seconds = backoff_max_seconds
        self.production_logger = get_production_logger()

    @property
    def name(self) -> str:
        return self.provider.name

    @property
    def enabled(self) -> bool:
        return self.provider.enabled

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(1 + self.retry_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=self.backoff_max_seconds),
            retry=retry_if_result(self._should_retry),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
            before_sleep=self._log_retry,
        )

    def _should_retry(self, outcome: QuoteOutcome) -> bool:
        # An attempt that opened the circuit ends the loop with its own outcome
        return outcome.is_transient and self.breaker.state != CircuitState.OPEN

    def _log_retry(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome.result()
        logger.info(
            f'Retrying {self.name} after {outcome.error_kind.value} '
            f'(attempt {retry_state.attempt_number}/{1 + self.retry_attempts}, '
            f'sleeping {retry_state.next_action.sleep:.2f}s)'
        )

    async def call(
        self,
        request: QuoteRequest,
        credentials: ProviderCredentials | None = None,
        deadline: float | None = None,
    ) -> QuoteOutcome:
        start_time = time.perf_counter()
        attempt_number = 0

        async def attempt() -> QuoteOutcome:
            nonlocal attempt_number
            attempt_number += 1
            outcome = await self._attempt(request, credentials, deadline)
            self.production_logger.log_provider_call(
                provider_name=self.name,
                success=outcome.success,
                elapsed_ms=outcome.elapsed_ms,
                attempt=attempt_number,
                error_kind=outcome.error_kind.value if outcome.error_kind else None,
                error_message=outcome.error_message,
                quote_data={'rate': outcome.rate, 'converted_amount': outcome.converted_amount}
                if outcome.success else None,
            )
            return outcome

        try:
            async with asyncio.timeout_at(deadline):
                outcome = await self._retrying()(attempt)
        except TimeoutError:
            outcome = QuoteOutcome.failed(
                self.name,
                ErrorKind.CANCELLED,
                f'Deadline exceeded after {attempt_number} attempt(s)',
                0.0,
            )

        return replace(outcome, elapsed_ms=(time.perf_counter() - start_time) * 1000)

    async def _attempt(
        self,
        request: QuoteRequest,
        credentials: ProviderCredentials | None,
        deadline: float | None,
    ) -> QuoteOutcome:
        start_time = time.perf_counter()
        try:
            return await self.breaker.call(lambda: self._guarded_fetch(request, credentials, deadline))
        except CircuitBreakerError as e:
            return QuoteOutcome.failed(
                self.name, ErrorKind.CIRCUIT_OPEN, str(e), (time.perf_counter() - start_time) * 1000
            )

    async def _guarded_fetch(
        self,
        request: QuoteRequest,
        credentials: ProviderCredentials | None,
        deadline: float | None,
    ) -> QuoteOutcome:
        start_time = time.perf_counter()
        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await self.provider.fetch_quote(request, credentials, deadline)
        except TimeoutError:
            return QuoteOutcome.failed(
                self.name,
                ErrorKind.TIMEOUT,
                f'No answer within {self.timeout_seconds}s',
                (time.perf_counter() - start_time) * 1000,
            )
        except Exception as e:
            logger.exception(f'Unexpected error from provider {self.name}')
            return QuoteOutcome.failed(
                self.name,
                ErrorKind.UNEXPECTED,
                f'{e.__class__.__name__}: {e}',
                (time.perf_counter() - start_time) * 1000,
            )
