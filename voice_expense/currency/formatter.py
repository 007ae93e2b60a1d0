"""
Currency Formatter

Renders canonical amounts for display and reads them back.

Output always uses Western digits, ',' for grouping and '.' for
decimals, with exactly two decimal places.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from voice_expense.currency.catalog import CurrencyCatalog
from voice_expense.models.currency import Currency
from voice_expense.models.expense import to_canonical_amount


# Symbol written directly before the amount
TIGHT_PREFIX_CODES = {"USD", "GBP", "INR"}
# Symbol written after the amount
SUFFIX_CODES = {"EUR"}

_NUMBER = re.compile(r"-?\d[\d,]*(?:\.\d+)?|-?\.\d+")


class CurrencyFormatError(ValueError):
    """Text could not be read as an amount."""
    pass


class CurrencyFormatter:
    """Formats and parses amounts for the currencies of a catalog."""

    def __init__(self, catalog: Optional[CurrencyCatalog] = None):
        self.catalog = catalog

    def _currency(self, currency: Union[Currency, str]) -> Optional[Currency]:
        if isinstance(currency, Currency):
            return currency
        if self.catalog is None:
            return None
        return self.catalog.get(currency)

    def format(
        self,
        amount: Decimal,
        currency: Union[Currency, str],
        show_symbol: bool = True,
        show_code: bool = False,
    ) -> str:
        """
        Format an amount, e.g. '$1,234.50', '12.00€' or 'د.إ 99.00'.

        A currency code unknown to the catalog is rendered as the code
        followed by the amount.
        """
        number = f"{to_canonical_amount(Decimal(amount)):,.2f}"
        resolved = self._currency(currency)
        code = resolved.code if resolved else str(currency).upper()

        if not show_symbol or resolved is None:
            text = f"{code} {number}" if resolved is None and show_symbol else number
        elif resolved.is_rtl:
            text = f"{resolved.symbol} {number}"
        elif code in TIGHT_PREFIX_CODES:
            text = f"{resolved.symbol}{number}"
        elif code in SUFFIX_CODES:
            text = f"{number}{resolved.symbol}"
        else:
            text = f"{resolved.symbol} {number}"

        if show_code and not text.startswith(code):
            text = f"{text} {code}"
        return text

    def parse(self, text: str, currency: Optional[Union[Currency, str]] = None) -> Decimal:
        """
        Read a formatted amount back into a canonical Decimal.

        Symbols, codes and grouping separators are ignored.

        Raises:
            CurrencyFormatError: If no number is present
        """
        cleaned = text
        resolved = self._currency(currency) if currency is not None else None
        if resolved is not None:
            cleaned = cleaned.replace(resolved.symbol, " ")
            cleaned = re.sub(re.escape(resolved.code), " ", cleaned, flags=re.IGNORECASE)

        match = _NUMBER.search(cleaned)
        if not match:
            raise CurrencyFormatError(f"No amount found in {text!r}")
        try:
            value = Decimal(match.group(0).replace(",", ""))
        except InvalidOperation as e:
            raise CurrencyFormatError(f"Invalid amount in {text!r}") from e
        return to_canonical_amount(value)
