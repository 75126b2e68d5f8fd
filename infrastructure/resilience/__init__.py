from .circuit_breaker import CircuitBreaker, CircuitBreakerError, CircuitState
from .resilient_provider import ResilientProvider

__all__ = ['CircuitBreaker', 'CircuitBreakerError', 'CircuitState', 'ResilientProvider']
