from decimal import Decimal
from typing import Any

import httpx

from domain.models.quote import QuoteRequest
from infrastructure.providers.base import InvalidResponseError, QuoteProvider, get_field, to_decimal


class NestedJsonQuoteProvider(QuoteProvider):
    SUCCESS_STATUS = 200

    def _build_request(self, request: QuoteRequest) -> dict[str, Any]:
        return self._json_request({
            'exchange': {
                'sourceCurrency': request.source_currency,
                'targetCurrency': request.target_currency,
                'quantity': request.amount,
            }
        })

    def _parse_response(self, response: httpx.Response) -> tuple[Decimal | None, Decimal | None]:
        data = self._json_body(response)

        # The envelope carries its own status next to the HTTP one
        status_code = get_field(data, 'statusCode')
        if status_code != self.SUCCESS_STATUS:
            message = data.get('message') or 'no message'
            raise InvalidResponseError(f'Provider reported status {status_code}: {message}')

        total = get_field(get_field(data, 'data'), 'total')
        return None, to_decimal(total, 'data.total')
