import xml.etree.ElementTree as ET
from decimal import Decimal
from typing import Any

import httpx

from domain.models.quote import QuoteRequest
from infrastructure.providers.base import InvalidResponseError, QuoteProvider, to_decimal


class XmlQuoteProvider(QuoteProvider):
    """
    XML provider.

    Request:  <XML><From>USD</From><To>EUR</To><Amount>100</Amount></XML>
    Response: <XML><Result>87.00</Result></XML>, where Result is the converted amount.
    """

    def _build_request(self, request: QuoteRequest) -> dict[str, Any]:
        root = ET.Element('XML')
        ET.SubElement(root, 'From').text = request.source_currency
        ET.SubElement(root, 'To').text = request.target_currency
        ET.SubElement(root, 'Amount').text = str(request.amount)

        return {
            'content': ET.tostring(root, encoding='utf-8'),
            'headers': {'Content-Type': 'application/xml', 'Accept': 'application/xml'},
        }

    def _parse_response(self, response: httpx.Response) -> tuple[Decimal | None, Decimal | None]:
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise InvalidResponseError(f'Response is not valid XML: {e}') from e

        result = next((child for child in root if child.tag.casefold() == 'result'), None)
        if result is None:
            raise InvalidResponseError("Response is missing 'Result'")
        return None, to_decimal(result.text, 'Result')
