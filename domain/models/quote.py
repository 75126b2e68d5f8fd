from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

from domain.exceptions.quote import InvalidRequestError


class ErrorKind(Enum):
    MISSING_CREDENTIAL = 'missing_credential'
    AUTHENTICATION_FAILURE = 'authentication_failure'
    RATE_LIMITED = 'rate_limited'
    TIMEOUT = 'timeout'
    CIRCUIT_OPEN = 'circuit_open'
    INVALID_RESPONSE = 'invalid_response'
    TRANSPORT_ERROR = 'transport_error'
    CANCELLED = 'cancelled'
    UNEXPECTED = 'unexpected'


# Network-level failures worth another attempt
TRANSIENT_ERROR_KINDS = frozenset({ErrorKind.TRANSPORT_ERROR, ErrorKind.TIMEOUT})


def _normalize_currency(value: object, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequestError(f'{field_name} is required')

    code = value.strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise InvalidRequestError(f'{field_name} must be a 3-letter currency code, got {value!r}')
    return code


def _normalize_amount(value: object) -> Decimal:
    if isinstance(value, bool):
        raise InvalidRequestError(f'Amount must be a number, got {value!r}')
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidRequestError(f'Amount must be a number, got {value!r}') from e

    if not amount.is_finite() or amount <= 0:
        raise InvalidRequestError('Amount must be positive')
    return amount


@dataclass(frozen=True)
class QuoteRequest:
    """A validated request to convert `amount` of one currency into another"""
    source_currency: str
    target_currency: str
    amount: Decimal

    def __post_init__(self):
        source = _normalize_currency(self.source_currency, 'Source currency')
        target = _normalize_currency(self.target_currency, 'Target currency')
        if source == target:
            raise InvalidRequestError('Source and target currencies must be different')

        object.__setattr__(self, 'source_currency', source)
        object.__setattr__(self, 'target_currency', target)
        object.__setattr__(self, 'amount', _normalize_amount(self.amount))


@dataclass(frozen=True)
class QuoteOutcome:
    """Result of asking one provider for a quote, successful or not"""
    provider_name: str
    success: bool
    elapsed_ms: float
    rate: Decimal | None = None
    converted_amount: Decimal | None = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    observed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self):
        has_quote = self.rate is not None and self.converted_amount is not None
        has_error = self.error_kind is not None and self.error_message is not None

        if self.success:
            if not has_quote or self.error_kind is not None or self.error_message is not None:
                raise ValueError('A successful outcome carries a rate and converted amount only')
            if self.rate <= 0 or self.converted_amount <= 0:
                raise ValueError('A successful outcome needs a positive rate and converted amount')
        elif not has_error or self.rate is not None or self.converted_amount is not None:
            raise ValueError('A failed outcome carries an error kind and message only')

    @classmethod
    def succeeded(cls, provider_name: str, rate: Decimal, converted_amount: Decimal,
                  elapsed_ms: float) -> 'QuoteOutcome':
        return cls(
            provider_name=provider_name,
            success=True,
            elapsed_ms=elapsed_ms,
            rate=rate,
            converted_amount=converted_amount,
        )

    @classmethod
    def failed(cls, provider_name: str, error_kind: ErrorKind, error_message: str,
               elapsed_ms: float) -> 'QuoteOutcome':
        return cls(
            provider_name=provider_name,
            success=False,
            elapsed_ms=elapsed_ms,
            error_kind=error_kind,
            error_message=error_message,
        )

    @property
    def is_transient(self) -> bool:
        return self.error_kind in TRANSIENT_ERROR_KINDS


@dataclass(frozen=True)
class AggregationResult:
    """Best offer of one round plus the outcome of every provider asked"""
    best_outcome: QuoteOutcome
    all_outcomes: tuple[QuoteOutcome, ...]
    total_elapsed_ms: float
    produced_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self):
        if not self.best_outcome.success or self.best_outcome not in self.all_outcomes:
            raise ValueError('Best outcome must be one of the successful outcomes')

    @property
    def successful_outcomes(self) -> list[QuoteOutcome]:
        return [o for o in self.all_outcomes if o.success]

    @property
    def successful_count(self) -> int:
        return len(self.successful_outcomes)

    @property
    def failed_count(self) -> int:
        return self.total_count - self.successful_count

    @property
    def total_count(self) -> int:
        return len(self.all_outcomes)

    @property
    def average_rate(self) -> Decimal:
        rates = [o.rate for o in self.successful_outcomes]
        if not rates:
            return Decimal('0')
        return sum(rates, Decimal('0')) / len(rates)

    @property
    def success_rate(self) -> float:
        if not self.total_count:
            return 0.0
        return self.successful_count / self.total_count * 100

    def summary(self) -> str:
        return (
            f'Best offer: {self.best_outcome.provider_name} ({self.best_outcome.converted_amount:.2f}) | '
            f'Success rate: {self.successful_count}/{self.total_count} ({self.success_rate:.1f}%) | '
            f'Processing time: {self.total_elapsed_ms:.0f}ms'
        )
