import asyncio
from decimal import Decimal

import pytest

from application.services.quote_aggregator import QuoteAggregator, select_best
from application.services.statistics_store import StatisticsStore
from domain.exceptions.quote import AllProvidersFailedError, NoProvidersEnabledError
from domain.models.quote import ErrorKind, QuoteOutcome
from infrastructure.providers import ProviderCredentials
from infrastructure.resilience import CircuitBreaker, ResilientProvider


def ok(name, rate, converted):
    return QuoteOutcome.succeeded(name, Decimal(rate), Decimal(converted), 1.0)


def failed(name, kind=ErrorKind.TRANSPORT_ERROR):
    return QuoteOutcome.failed(name, kind, f'{kind.value} from {name}', 1.0)


async def hang(*args, **kwargs):
    await asyncio.sleep(10)


@pytest.fixture
def statistics():
    return StatisticsStore()


@pytest.fixture
def build_aggregator(statistics):
    def _build(*providers, timeout_seconds=5.0):
        resilient = [
            ResilientProvider(
                provider,
                CircuitBreaker(provider.name, failure_threshold=3, recovery_timeout=30),
                timeout_seconds=timeout_seconds,
                retry_attempts=2,
                backoff_seconds=0,
                backoff_max_seconds=0,
            )
            for provider in providers
        ]
        return QuoteAggregator(resilient, statistics)
    return _build


class TestQuoteSelection:

    @pytest.mark.asyncio
    async def test_best_offer_with_one_timeout(self, make_provider, build_aggregator, statistics, quote_request):
        # Arrange
        p1 = make_provider('P1', ok('P1', '0.85', '85.00'))
        p2 = make_provider('P2', ok('P2', '0.87', '87.00'))
        p3 = make_provider('P3', failed('P3', ErrorKind.TIMEOUT))
        aggregator = build_aggregator(p1, p2, p3)

        # Act
        result = await aggregator.quote(quote_request)

        # Assert
        assert result.best_outcome.provider_name == 'P2'
        assert result.best_outcome.converted_amount == Decimal('87.00')
        assert result.successful_count == 2
        assert result.total_count == 3
        assert [o.provider_name for o in result.all_outcomes] == ['P1', 'P2', 'P3']
        assert result.all_outcomes[2].error_kind == ErrorKind.TIMEOUT

        stats = statistics.snapshot()
        assert stats.total_requests == 1
        assert stats.successful_requests == 1
        assert stats.providers['P2'].best_offer_count == 1
        assert stats.providers['P3'].successful_requests == 0

    @pytest.mark.asyncio
    async def test_best_offer_is_at_least_every_success(self, make_provider, build_aggregator, quote_request):
        aggregator = build_aggregator(
            make_provider('P1', ok('P1', '0.90', '90.00')),
            make_provider('P2', ok('P2', '0.87', '87.00')),
            make_provider('P3', ok('P3', '0.89', '89.00')),
        )

        result = await aggregator.quote(quote_request)

        assert all(
            result.best_outcome.converted_amount >= o.converted_amount for o in result.successful_outcomes
        )
        assert result.best_outcome.provider_name == 'P1'

    @pytest.mark.asyncio
    async def test_tie_goes_to_first_registered(self, make_provider, build_aggregator, quote_request):
        aggregator = build_aggregator(
            make_provider('P1', ok('P1', '0.85', '85.00')),
            make_provider('P2', ok('P2', '0.87', '87.00')),
            make_provider('P3', ok('P3', '0.87', '87.00')),
        )

        result = await aggregator.quote(quote_request)

        assert result.best_outcome.provider_name == 'P2'

    def test_select_best_ignores_failures(self):
        assert select_best([failed('P1'), failed('P2')]) is None
        assert select_best([failed('P1'), ok('P2', '1', '100')]).provider_name == 'P2'


class TestRoundFailures:

    @pytest.mark.asyncio
    async def test_all_fail_names_every_provider(self, make_provider, build_aggregator, statistics, quote_request):
        aggregator = build_aggregator(
            make_provider('P1', failed('P1', ErrorKind.AUTHENTICATION_FAILURE)),
            make_provider('P2', failed('P2', ErrorKind.INVALID_RESPONSE)),
            make_provider('P3', failed('P3', ErrorKind.RATE_LIMITED)),
        )

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await aggregator.quote(quote_request)

        assert set(exc_info.value.failures) == {'P1', 'P2', 'P3'}
        assert 'authentication_failure' in exc_info.value.failures['P1']

        stats = statistics.snapshot()
        assert stats.total_requests == 1
        assert stats.failed_requests == 1
        assert stats.successful_requests == 0

    @pytest.mark.asyncio
    async def test_all_disabled_raises_without_calls(self, make_provider, build_aggregator, statistics, quote_request):
        providers = [make_provider(name, ok(name, '1', '100'), enabled=False) for name in ('P1', 'P2', 'P3')]
        aggregator = build_aggregator(*providers)

        with pytest.raises(NoProvidersEnabledError):
            await aggregator.quote(quote_request)

        for provider in providers:
            provider.fetch_quote.assert_not_called()
        assert statistics.snapshot().total_requests == 0

    @pytest.mark.asyncio
    async def test_disabled_providers_are_skipped(self, make_provider, build_aggregator, quote_request):
        p2 = make_provider('P2', ok('P2', '0.99', '99.00'), enabled=False)
        aggregator = build_aggregator(make_provider('P1', ok('P1', '0.85', '85.00')), p2)

        result = await aggregator.quote(quote_request)

        assert result.total_count == 1
        assert result.best_outcome.provider_name == 'P1'
        p2.fetch_quote.assert_not_called()

    @pytest.mark.asyncio
    async def test_counts_add_up(self, make_provider, build_aggregator, quote_request):
        aggregator = build_aggregator(
            make_provider('P1', ok('P1', '0.85', '85.00')),
            make_provider('P2', failed('P2', ErrorKind.AUTHENTICATION_FAILURE)),
            make_provider('P3', ok('P3', '0.86', '86.00')),
        )

        result = await aggregator.quote(quote_request)

        assert result.successful_count + result.failed_count == result.total_count == 3


class TestCredentialsAndCancellation:

    @pytest.mark.asyncio
    async def test_credentials_routed_per_provider(self, make_provider, build_aggregator, quote_request):
        p1 = make_provider('P1', ok('P1', '0.85', '85.00'))
        p2 = make_provider('P2', ok('P2', '0.87', '87.00'))
        aggregator = build_aggregator(p1, p2)
        creds = ProviderCredentials(api_key='only-for-p2')

        await aggregator.quote(quote_request, {'P2': creds})

        assert p1.fetch_quote.call_args[0][1] is None
        assert p2.fetch_quote.call_args[0][1] is creds

    @pytest.mark.asyncio
    async def test_deadline_cancels_slow_providers(self, make_provider, build_aggregator, statistics, quote_request):
        aggregator = build_aggregator(
            make_provider('P1', ok('P1', '0.85', '85.00')),
            make_provider('P2', hang),
        )
        deadline = asyncio.get_running_loop().time() + 0.05

        result = await aggregator.quote(quote_request, deadline=deadline)

        assert result.best_outcome.provider_name == 'P1'
        assert result.all_outcomes[1].error_kind == ErrorKind.CANCELLED
        assert statistics.snapshot().providers['P2'].last_error.startswith('cancelled')

    @pytest.mark.asyncio
    async def test_caller_cancellation_propagates(self, make_provider, build_aggregator, statistics, quote_request):
        p1 = make_provider('P1', hang)
        p2 = make_provider('P2', hang)
        aggregator = build_aggregator(p1, p2)

        task = asyncio.create_task(aggregator.quote(quote_request))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert p1.fetch_quote.await_count == 1
        assert p2.fetch_quote.await_count == 1
        assert statistics.snapshot().total_requests == 0
        assert [t for t in asyncio.all_tasks() if t.get_name().startswith('quote-')] == []
