import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from config.settings import ProviderSettings
from domain.models.quote import ErrorKind, QuoteOutcome, QuoteRequest
from infrastructure.monitoring.logger import CustomJSONEncoder
from infrastructure.providers.credentials import ProviderCredentials, build_auth, resolve_credentials

logger = logging.getLogger(__name__)

ABSOLUTE_TOLERANCE = Decimal('0.01')
RELATIVE_TOLERANCE = Decimal('0.0001')


class InvalidResponseError(ValueError):
    """Raised by adapters when a provider answered with something unusable"""


def to_decimal(value: Any, field_name: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidResponseError(f'Missing or malformed {field_name}: {value!r}')
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidResponseError(f'Malformed {field_name}: {value!r}') from e


def get_field(data: Any, key: str) -> Any:
    """Case-insensitive key lookup, so `rate` and `Rate` both match."""
    if not isinstance(data, Mapping):
        raise InvalidResponseError(f'Expected an object holding {key!r}, got {type(data).__name__}')
    if key in data:
        return data[key]
    wanted = key.casefold()
    for name, value in data.items():
        if isinstance(name, str) and name.casefold() == wanted:
            return value
    raise InvalidResponseError(f'Response is missing {key!r}')


def classify_status(status_code: int) -> ErrorKind | None:
    if 200 <= status_code < 300:
        return None
    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION_FAILURE
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code == 408 or status_code >= 500:
        return ErrorKind.TRANSPORT_ERROR
    return ErrorKind.INVALID_RESPONSE


class QuoteProvider(ABC):
    """
    Base class for quote providers, handling the HTTP exchange shared by every
    wire format.

    Subclasses only describe their wire format: how a QuoteRequest becomes
    request arguments, and how a response body yields a rate and/or a
    converted amount. One `fetch_quote` call is exactly one network round trip.
    """

    EXCHANGE_ENDPOINT = 'exchange'
    HEALTH_ENDPOINT = 'health'

    def __init__(
        self,
        settings: ProviderSettings,
        client: httpx.AsyncClient | None = None,
        is_enabled: Callable[[str], bool] | None = None,
    ):
        self.settings = settings
        self.base_url = settings.base_url.rstrip('/')
        self._credentials = ProviderCredentials.from_settings(settings)
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(settings.timeout_seconds))
        self._is_enabled = is_enabled

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def enabled(self) -> bool:
        if self._is_enabled is None:
            return self.settings.enabled
        return self._is_enabled(self.name)

    @abstractmethod
    def _build_request(self, request: QuoteRequest) -> dict[str, Any]:
        """Keyword arguments for the POST to the exchange endpoint."""

    @abstractmethod
    def _parse_response(self, response: httpx.Response) -> tuple[Decimal | None, Decimal | None]:
        """Return (rate, converted_amount); either may be None but not both."""

    @staticmethod
    def _json_request(payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST arguments for a JSON body. Decimal amounts are sent with every digit."""
        return {
            'content': json.dumps(payload, cls=CustomJSONEncoder),
            'headers': {'Content-Type': 'application/json', 'Accept': 'application/json'},
        }

    async def fetch_quote(
        self,
        request: QuoteRequest,
        credentials: ProviderCredentials | None = None,
        deadline: float | None = None,
    ) -> QuoteOutcome:
        start_time = time.perf_counter()

        auth = build_auth(self.settings.auth_type, resolve_credentials(self._credentials, credentials))
        if auth is None:
            return self._failed(
                ErrorKind.MISSING_CREDENTIAL,
                f'No {self.settings.auth_type.value} credential available for {self.name}',
                start_time,
            )

        url = f'{self.base_url}/{self.EXCHANGE_ENDPOINT}'
        try:
            async with asyncio.timeout_at(deadline):
                response = await self._client.post(url, auth=auth, **self._build_request(request))
        except (TimeoutError, httpx.TimeoutException) as e:
            return self._failed(ErrorKind.TIMEOUT, f'Request timed out: {e.__class__.__name__}', start_time)
        except httpx.RequestError as e:
            return self._failed(ErrorKind.TRANSPORT_ERROR, f'Request failed: {e.__class__.__name__}', start_time)

        error_kind = classify_status(response.status_code)
        if error_kind is not None:
            return self._failed(error_kind, f'HTTP {response.status_code}: {response.text[:200]}', start_time)

        try:
            rate, converted_amount = self._parse_response(response)
            rate, converted_amount = self._reconcile(rate, converted_amount, request.amount)
        except InvalidResponseError as e:
            return self._failed(ErrorKind.INVALID_RESPONSE, str(e), start_time)

        elapsed_ms = self._elapsed_ms(start_time)
        logger.debug(f'{self.name} quoted {request.source_currency}->{request.target_currency} '
                     f'at {rate} in {elapsed_ms:.0f}ms')
        return QuoteOutcome.succeeded(self.name, rate, converted_amount, elapsed_ms)

    @staticmethod
    def _reconcile(rate: Decimal | None, converted_amount: Decimal | None,
                   amount: Decimal) -> tuple[Decimal, Decimal]:
        if rate is None and converted_amount is None:
            raise InvalidResponseError('Response carries neither a rate nor a converted amount')

        for label, value in (('rate', rate), ('converted amount', converted_amount)):
            if value is not None and (not value.is_finite() or value <= 0):
                raise InvalidResponseError(f'Provider returned a non-positive {label}: {value}')

        if converted_amount is None:
            return rate, rate * amount
        if rate is None:
            return converted_amount / amount, converted_amount

        expected = rate * amount
        tolerance = max(ABSOLUTE_TOLERANCE, abs(expected) * RELATIVE_TOLERANCE)
        if abs(converted_amount - expected) > tolerance:
            raise InvalidResponseError(
                f'Converted amount {converted_amount} does not match rate {rate} x {amount}'
            )
        return rate, converted_amount

    @staticmethod
    def _json_body(response: httpx.Response) -> Any:
        try:
            return response.json(parse_float=Decimal)
        except ValueError as e:
            raise InvalidResponseError(f'Response is not valid JSON: {response.text[:200]}') from e

    async def probe(self, deadline: float | None = None) -> bool:
        try:
            async with asyncio.timeout_at(deadline):
                response = await self._client.get(f'{self.base_url}/{self.HEALTH_ENDPOINT}')
        except (TimeoutError, httpx.HTTPError) as e:
            logger.debug(f'Health probe for {self.name} failed: {e.__class__.__name__}')
            return False
        return response.is_success

    def _failed(self, error_kind: ErrorKind, message: str, start_time: float) -> QuoteOutcome:
        logger.debug(f'{self.name} failed with {error_kind.value}: {message}')
        return QuoteOutcome.failed(self.name, error_kind, message, self._elapsed_ms(start_time))

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000

    async def close(self) -> None:
        """Cleanly close the HTTP client."""
        await self._client.aclose()
