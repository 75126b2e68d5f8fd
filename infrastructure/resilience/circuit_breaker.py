import logging
import threading
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from domain.models.quote import QuoteOutcome
from infrastructure.monitoring.logger import get_production_logger

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = 'CLOSED'
    OPEN = 'OPEN'
    HALF_OPEN = 'HALF_OPEN'


class CircuitBreakerError(Exception):
    """Raised when circuit breaker is open and blocking calls"""
    def __init__(self, provider_name: str, failure_count: int, retry_after: float,
                 trial_in_flight: bool = False):
        self.provider_name = provider_name
        self.failure_count = failure_count
        self.retry_after = retry_after
        self.trial_in_flight = trial_in_flight
        if trial_in_flight:
            message = f'Circuit breaker HALF_OPEN for {provider_name}: recovery trial already in flight'
        else:
            message = (
                f'Circuit breaker OPEN for {provider_name} ({failure_count} failures, '
                f'retry in {retry_after:.1f}s)'
            )
        super().__init__(message)


class CircuitBreaker:
    """
    In-memory circuit breaker for one quote provider.

    Transient outcomes (transport errors, timeouts) count as failures. Any
    other outcome means the provider answered, so it resets the count. After
    `recovery_timeout` seconds in OPEN, a single trial call is let through
    (HALF_OPEN); its result decides between CLOSED and another OPEN period.

    State changes happen under the lock; their log events are emitted after
    it is released.
    """

    def __init__(
            self,
            provider_name: str,
            failure_threshold: int = 3,
            recovery_timeout: float = 30.0,
            clock: Callable[[], float] = time.monotonic
    ):
        self.provider_name = provider_name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock

        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: float | None = None
        self._trial_in_flight = False
        self._pending_events: list[dict[str, Any]] = []

        self.production_logger = get_production_logger()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    async def call(self, func: Callable[[], Awaitable[QuoteOutcome]]) -> QuoteOutcome:
        """Execute function with circuit breaker protection"""
        try:
            is_trial = self._before_call()
        finally:
            self._flush_events()

        try:
            outcome = await func()
        except BaseException:
            # Cancelled or crashed: nothing was learned about the provider
            if is_trial:
                with self._lock:
                    self._trial_in_flight = False
            raise

        self._record(outcome, is_trial)
        return outcome

    def _before_call(self) -> bool:
        """Admit the call or raise CircuitBreakerError; True when it is the recovery trial."""
        with self._lock:
            if self._state == CircuitState.OPEN:
                remaining = self._opened_at + self.recovery_timeout - self._clock()
                if remaining > 0:
                    raise CircuitBreakerError(self.provider_name, self._failure_count, remaining)
                self._transition_state(CircuitState.HALF_OPEN, 'attempting_recovery')

            if self._state == CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    raise CircuitBreakerError(
                        self.provider_name, self._failure_count, 0.0, trial_in_flight=True
                    )
                self._trial_in_flight = True
                return True
            return False

    def _record(self, outcome: QuoteOutcome, was_trial: bool) -> None:
        with self._lock:
            if was_trial:
                self._trial_in_flight = False

            if outcome.is_transient:
                counted = self._on_failure(was_trial)
            else:
                counted = False
                self._on_success(was_trial)
            failure_count = self._failure_count
            state = self._state

        self._flush_events()
        if counted and state == CircuitState.CLOSED:
            logger.warning(
                f'Transient failure for {self.provider_name}: '
                f'{failure_count}/{self.failure_threshold}'
            )

    def _on_success(self, was_trial: bool) -> None:
        if self._state == CircuitState.HALF_OPEN and was_trial:
            self._failure_count = 0
            self._transition_state(CircuitState.CLOSED, 'recovery_successful')
        elif self._state == CircuitState.CLOSED:
            self._failure_count = 0

    def _on_failure(self, was_trial: bool) -> bool:
        """Count a transient failure; False when the result arrived too late to matter."""
        # Late results from calls admitted before the circuit opened are ignored
        if self._state == CircuitState.OPEN or (self._state == CircuitState.HALF_OPEN and not was_trial):
            return False

        self._failure_count += 1

        if self._state == CircuitState.HALF_OPEN:
            self._open('failure_during_recovery')
        elif self._failure_count >= self.failure_threshold:
            self._open(f'{self._failure_count}_consecutive_failures')
        return True

    def _open(self, reason: str) -> None:
        self._opened_at = self._clock()
        self._transition_state(CircuitState.OPEN, reason)

    def _transition_state(self, new_state: CircuitState, reason: str) -> None:
        """Change state; caller holds the lock and flushes events afterwards."""
        old_state = self._state
        self._state = new_state
        self._pending_events.append({
            'provider_name': self.provider_name,
            'old_state': old_state.value,
            'new_state': new_state.value,
            'failure_count': self._failure_count,
            'reason': reason,
        })

    def _flush_events(self) -> None:
        with self._lock:
            events, self._pending_events = self._pending_events, []
        for event in events:
            self.production_logger.log_circuit_breaker_event(**event)

    def status(self) -> dict[str, Any]:
        """Get current circuit breaker status for monitoring"""
        with self._lock:
            retry_after = 0.0
            if self._state == CircuitState.OPEN:
                retry_after = max(0.0, self._opened_at + self.recovery_timeout - self._clock())

            return {
                'provider_name': self.provider_name,
                'state': self._state.value,
                'status': 'healthy' if self._state == CircuitState.CLOSED else 'unhealthy',
                'failure_count': self._failure_count,
                'failure_threshold': self.failure_threshold,
                'recovery_timeout': self.recovery_timeout,
                'retry_after_seconds': round(retry_after, 3),
            }

    def force_reset(self) -> None:
        """Manually reset circuit breaker (for admin/debugging)"""
        with self._lock:
            self._failure_count = 0
            self._trial_in_flight = False
            self._opened_at = None
            self._transition_state(CircuitState.CLOSED, 'manual_reset')
        self._flush_events()

    def force_open(self, reason: str = 'manual_open') -> None:
        """Manually open circuit breaker (for maintenance)"""
        with self._lock:
            self._trial_in_flight = False
            self._open(reason)
        self._flush_events()
