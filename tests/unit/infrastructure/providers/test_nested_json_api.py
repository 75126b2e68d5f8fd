# nosec B101


import base64
import json
from decimal import Decimal

import httpx
import pytest

from domain.models.quote import ErrorKind, QuoteRequest
from infrastructure.providers import ProviderCredentials
from infrastructure.providers.nested_json_api import NestedJsonQuoteProvider


@pytest.mark.asyncio
async def test_fetch_quote_success(nested_settings, mock_client, quote_request):
    mock_client.post.return_value = httpx.Response(
        200, json={'statusCode': 200, 'message': 'ok', 'data': {'total': 86.5}}
    )

    provider = NestedJsonQuoteProvider(nested_settings, client=mock_client)
    outcome = await provider.fetch_quote(quote_request)

    assert outcome.success is True
    assert outcome.converted_amount == Decimal('86.5')
    assert outcome.rate == Decimal('0.865')

    call_args = mock_client.post.call_args
    assert json.loads(call_args[1]['content']) == {
        'exchange': {'sourceCurrency': 'USD', 'targetCurrency': 'EUR', 'quantity': '100'}
    }
    auth = call_args[1]['auth']
    assert isinstance(auth, httpx.BasicAuth)


@pytest.mark.asyncio
async def test_basic_auth_header_uses_key_and_secret(nested_settings, mock_client, quote_request):
    mock_client.post.return_value = httpx.Response(
        200, json={'statusCode': 200, 'message': 'ok', 'data': {'total': 86.5}}
    )

    provider = NestedJsonQuoteProvider(nested_settings, client=mock_client)
    await provider.fetch_quote(quote_request)

    auth = mock_client.post.call_args[1]['auth']
    request = next(auth.auth_flow(httpx.Request('POST', 'http://api3.test/exchange')))
    expected = base64.b64encode(b'user-3:secret-3').decode()
    assert request.headers['Authorization'] == f'Basic {expected}'


@pytest.mark.asyncio
async def test_envelope_status_other_than_200_is_invalid(nested_settings, mock_client, quote_request):
    mock_client.post.return_value = httpx.Response(
        200, json={'statusCode': 400, 'message': 'Unsupported currency pair', 'data': None}
    )

    provider = NestedJsonQuoteProvider(nested_settings, client=mock_client)
    outcome = await provider.fetch_quote(quote_request)

    assert outcome.error_kind == ErrorKind.INVALID_RESPONSE
    assert 'Unsupported currency pair' in outcome.error_message


@pytest.mark.asyncio
async def test_missing_data_is_invalid(nested_settings, mock_client, quote_request):
    mock_client.post.return_value = httpx.Response(200, json={'statusCode': 200, 'message': 'ok'})

    provider = NestedJsonQuoteProvider(nested_settings, client=mock_client)
    outcome = await provider.fetch_quote(quote_request)

    assert outcome.error_kind == ErrorKind.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_basic_auth_needs_secret(nested_settings, mock_client, quote_request):
    settings = nested_settings.model_copy(update={'api_secret': None})

    provider = NestedJsonQuoteProvider(settings, client=mock_client)
    outcome = await provider.fetch_quote(quote_request)

    assert outcome.error_kind == ErrorKind.MISSING_CREDENTIAL
    mock_client.post.assert_not_called()

    mock_client.post.return_value = httpx.Response(
        200, json={'statusCode': 200, 'message': 'ok', 'data': {'total': 86.5}}
    )
    outcome = await provider.fetch_quote(quote_request, credentials=ProviderCredentials(api_secret='from-header'))

    assert outcome.success is True


@pytest.mark.asyncio
async def test_exact_quantity_is_priced(nested_settings, mock_client):
    amount = Decimal('12345678901234567.89')
    mock_client.post.return_value = httpx.Response(
        200, json={'statusCode': 200, 'message': 'ok', 'data': {'total': '10617283855061728.3854'}}
    )

    provider = NestedJsonQuoteProvider(nested_settings, client=mock_client)
    outcome = await provider.fetch_quote(QuoteRequest('USD', 'EUR', amount))

    sent = json.loads(mock_client.post.call_args[1]['content'], parse_float=Decimal)
    assert sent['exchange']['quantity'] == '12345678901234567.89'
    assert mock_client.post.call_args[1]['headers']['Content-Type'] == 'application/json'
    assert outcome.rate == Decimal('0.86')
