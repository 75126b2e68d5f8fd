from decimal import Decimal
from typing import Any

import httpx

from domain.models.quote import QuoteRequest
from infrastructure.providers.base import QuoteProvider, get_field, to_decimal


class JsonQuoteProvider(QuoteProvider):
    """Flat JSON provider: posts {from, to, value} and reads back {rate}."""

    def _build_request(self, request: QuoteRequest) -> dict[str, Any]:
        return self._json_request({
            'from': request.source_currency,
            'to': request.target_currency,
            'value': request.amount,
        })

    def _parse_response(self, response: httpx.Response) -> tuple[Decimal | None, Decimal | None]:
        data = self._json_body(response)
        return to_decimal(get_field(data, 'rate'), 'rate'), None
