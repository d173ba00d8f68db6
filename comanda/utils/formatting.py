"""
Money formatting helpers

Prices are stored as integer cents. Locale rules (symbol placement,
separators) come from Babel's CLDR data.
"""
from decimal import Decimal
from typing import Optional

from babel.numbers import format_currency

from comanda.core.config import settings


def format_price(cents: Optional[int], locale: Optional[str] = None, currency: Optional[str] = None) -> str:
    """
    Format an amount in cents as a currency string with two decimals.

    Falsy amounts (0, None) format as zero.

        >>> format_price(150025)
        '$1,500.25'
    """
    locale = (locale or settings.DEFAULT_LOCALE).replace("-", "_")
    currency = currency or settings.DEFAULT_CURRENCY

    amount = Decimal(cents) / 100 if cents else Decimal("0")

    # currency_digits=False keeps the locale pattern's two fraction digits
    # even for currencies without minor units
    return format_currency(amount, currency, locale=locale, currency_digits=False)
