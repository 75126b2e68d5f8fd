from dataclasses import dataclass


@dataclass(frozen=True)
class SupportedCurrency:
    code: str
    name: str
    symbol: str
    country: str


SUPPORTED_CURRENCIES: tuple[SupportedCurrency, ...] = (
    SupportedCurrency('USD', 'US Dollar', '$', 'United States'),
    SupportedCurrency('EUR', 'Euro', '€', 'European Union'),
    SupportedCurrency('GBP', 'British Pound', '£', 'United Kingdom'),
    SupportedCurrency('JPY', 'Japanese Yen', '¥', 'Japan'),
    SupportedCurrency('CHF', 'Swiss Franc', 'CHF', 'Switzerland'),
    SupportedCurrency('CAD', 'Canadian Dollar', 'C$', 'Canada'),
    SupportedCurrency('AUD', 'Australian Dollar', 'A$', 'Australia'),
    SupportedCurrency('NZD', 'New Zealand Dollar', 'NZ$', 'New Zealand'),
    SupportedCurrency('SEK', 'Swedish Krona', 'kr', 'Sweden'),
    SupportedCurrency('NOK', 'Norwegian Krone', 'kr', 'Norway'),
    SupportedCurrency('DKK', 'Danish Krone', 'kr', 'Denmark'),
    SupportedCurrency('PLN', 'Polish Złoty', 'zł', 'Poland'),
    SupportedCurrency('CZK', 'Czech Koruna', 'Kč', 'Czech Republic'),
    SupportedCurrency('HUF', 'Hungarian Forint', 'Ft', 'Hungary'),
)
