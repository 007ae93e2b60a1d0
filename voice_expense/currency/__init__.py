"""Currency catalog, detection and formatting."""

from voice_expense.currency.catalog import (
    REGION_CURRENCIES,
    CatalogLoadError,
    CurrencyCatalog,
    region_from_locale,
)
from voice_expense.currency.detector import CurrencyDetector, is_substring_keyword
from voice_expense.currency.formatter import CurrencyFormatError, CurrencyFormatter

__all__ = [
    "REGION_CURRENCIES",
    "CatalogLoadError",
    "CurrencyCatalog",
    "CurrencyDetector",
    "CurrencyFormatError",
    "CurrencyFormatter",
    "is_substring_keyword",
    "region_from_locale",
]
