from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class BestQuoteRequest(BaseModel):
    # Currency codes and amount are validated by the domain model, which answers 400
    source_currency: str = Field(..., description='ISO 4217 code to convert from')
    target_currency: str = Field(..., description='ISO 4217 code to convert to')
    amount: Decimal = Field(..., description='Amount of the source currency')

    model_config = ConfigDict(
        json_schema_extra={
            'example': {'source_currency': 'USD', 'target_currency': 'EUR', 'amount': 100.00}
        }
    )


class ToggleProviderRequest(BaseModel):
    enabled: bool


class BulkToggleRequest(BaseModel):
    providers: dict[str, bool] = Field(..., description='Provider name to desired enabled flag')

    model_config = ConfigDict(
        json_schema_extra={'example': {'providers': {'API1': True, 'API2': False}}}
    )
