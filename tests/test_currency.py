"""
Tests for the currency catalog, detector and formatter.
"""

import json
from decimal import Decimal

import pytest

from voice_expense.audit import AuditLogger, InMemoryAuditSink
from voice_expense.currency import (
    CatalogLoadError,
    CurrencyCatalog,
    CurrencyDetector,
    CurrencyFormatter,
    CurrencyFormatError,
    is_substring_keyword,
    region_from_locale,
)
from voice_expense.models import AuditEventType, CurrencySource

from conftest import make_currency


class TestCatalogLoading:
    """Tests for loading the catalog file."""

    def test_packaged_catalog(self, catalog):
        """Test the shipped catalog loads all currencies."""
        assert len(catalog) == 36
        assert catalog.version == "2.1.0"
        assert not catalog.is_degraded
        assert "AED" in catalog
        assert "aed" in catalog
        assert catalog.get("usd").symbol == "$"

    def test_codes_are_unique(self, catalog):
        """Test exactly one entry per code."""
        assert len(set(catalog.codes)) == len(catalog.codes)

    def test_missing_file_degrades(self, tmp_path):
        """Test that a missing file leaves the catalog empty, not raising."""
        sink = InMemoryAuditSink()
        catalog = CurrencyCatalog.load(tmp_path / "nope.json", audit_logger=AuditLogger(sink))
        assert catalog.is_initialized
        assert catalog.is_degraded
        assert len(catalog) == 0
        assert sink.events_of_type(AuditEventType.CATALOG_LOAD_FAILED)

    def test_malformed_json_degrades(self, tmp_path):
        """Test that invalid JSON degrades the catalog."""
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        catalog = CurrencyCatalog.load(path)
        assert catalog.is_degraded
        assert isinstance(catalog.load_error, CatalogLoadError)

    def test_duplicate_codes_degrade(self, tmp_path):
        """Test that a document with duplicate codes is rejected."""
        entry = {
            "code": "USD", "symbol": "$", "displayName": "US Dollar",
            "shortName": "Dollar", "localeIdentifier": "en_US",
            "isRTL": False, "voiceKeywords": ["usd"],
        }
        path = tmp_path / "dupes.json"
        path.write_text(json.dumps({
            "version": "1", "lastUpdated": "2025-01-01", "currencies": [entry, entry],
        }), encoding="utf-8")
        assert CurrencyCatalog.load(path).is_degraded

    def test_require_loaded_raises_when_degraded(self, degraded_catalog):
        """Test that callers can insist on a loaded catalog."""
        with pytest.raises(CatalogLoadError):
            degraded_catalog.require_loaded()

    def test_require_loaded_passes(self, catalog):
        """Test require_loaded on a healthy catalog."""
        catalog.require_loaded()

    def test_initialize_is_idempotent(self, settings, tmp_path):
        """Test that a second initialize is a logged no-op."""
        sink = InMemoryAuditSink()
        catalog = CurrencyCatalog(audit_logger=AuditLogger(sink))
        assert catalog.initialize(settings.catalog_file) is True
        assert catalog.initialize(tmp_path / "other.json") is True

        assert len(catalog) == 36
        ignored = sink.events_of_type(AuditEventType.CATALOG_REINITIALIZATION_IGNORED)
        assert len(ignored) == 1
        assert not sink.events_of_type(AuditEventType.CATALOG_LOAD_FAILED)


class TestLocale:
    """Tests for locale to currency mapping."""

    @pytest.mark.parametrize("hint,region", [
        ("en_AE", "AE"),
        ("ar-AE", "AE"),
        ("AE", "AE"),
        ("en_US_POSIX", "US"),
        ("en", None),
        ("", None),
        (None, None),
    ])
    def test_region_from_locale(self, hint, region):
        """Test region extraction from locale hints."""
        assert region_from_locale(hint) == region

    @pytest.mark.parametrize("hint,code", [
        ("en_AE", "AED"),
        ("en_GB", "GBP"),
        ("hi_IN", "INR"),
        ("fr_FR", "EUR"),
        ("de_DE", "EUR"),
        ("ja_JP", "JPY"),
    ])
    def test_currency_for_locale(self, catalog, hint, code):
        """Test catalog regions first, then the built-in region table."""
        assert catalog.currency_for_locale(hint) == code

    def test_degraded_catalog_still_maps_common_regions(self, degraded_catalog):
        """Test the built-in table works without the catalog."""
        assert degraded_catalog.currency_for_locale("en_AE") == "AED"
        assert degraded_catalog.currency_for_locale("it_IT") == "EUR"
        assert degraded_catalog.currency_for_locale("ja_JP") is None


class TestKeywordMatching:
    """Tests for the keyword matching rule."""

    @pytest.mark.parametrize("keyword,substring", [
        ("$", True),
        ("c$", True),
        ("kč", True),
        ("د.إ", True),
        ("﷼", True),
        ("rs", False),
        ("rs.", False),
        ("usd", False),
        ("dollars", False),
        ("canadian dollars", False),
    ])
    def test_substring_rule(self, keyword, substring):
        """Test short and symbolic keywords match as substrings."""
        assert is_substring_keyword(keyword) is substring

    def test_word_keywords_need_boundaries(self, detector):
        """Test that 'sar' does not fire inside 'necessary'."""
        assert detector.detect_from_keywords("that was necessary") is None

    def test_symbol_keywords_match_without_spaces(self, detector):
        """Test that symbols are found glued to numbers."""
        assert detector.detect_from_keywords("$100") == "USD"
        assert detector.detect_from_keywords("lunch 12€") == "EUR"

    def test_abbreviations_need_boundaries(self, detector):
        """Test that 'rs' and 'rs.' do not fire inside words."""
        assert detector.detect_from_keywords("three hours of parking") is None
        assert detector.detect_from_keywords("i spent 5 dollars.") == "USD"
        assert detector.detect_from_keywords("Rs. 500 for the cab") == "INR"
        assert detector.detect_from_keywords("500 rs") == "INR"


class TestDetection:
    """Tests for CurrencyDetector.detect."""

    @pytest.mark.parametrize("text,code", [
        ("$100", "USD"),
        ("100 dirhams", "AED"),
        ("80 canadian dollars", "CAD"),
        ("50 bahraini dinars", "BHD"),
        ("200 qatari riyals", "QAR"),
        ("2000 philippine pesos", "PHP"),
        ("paid ¥5000", "JPY"),
        ("cn¥ 50", "CNY"),
        ("I spent 100 US dollars", "USD"),
        ("30 quid at the pub", "GBP"),
        ("paid ﷼100 for the service", "SAR"),
        ("Rs 500 on food", "INR"),
    ])
    def test_keyword_detection(self, detector, text, code):
        """Test the longest keyword decides."""
        detected, source = detector.detect(text)
        assert detected == code
        assert source == CurrencySource.KEYWORD

    def test_no_keyword_uses_locale(self, detector):
        """Test fallback to the locale currency."""
        assert detector.detect("100", locale_hint="en_AE") == ("AED", CurrencySource.LOCALE)

    def test_unknown_locale_uses_default(self, detector):
        """Test fallback to USD."""
        assert detector.detect("100") == ("USD", CurrencySource.DEFAULT)
        assert detector.detect("100", locale_hint="xx_ZZ") == ("USD", CurrencySource.DEFAULT)

    def test_tagged_currency_wins(self, detector):
        """Test that the amount pattern's currency is used directly."""
        assert detector.detect("100 euros", tagged_currency="GBP") == ("GBP", CurrencySource.PATTERN)

    def test_explicit_currency_wins(self, detector):
        """Test that the caller's currency beats everything."""
        code, source = detector.detect(
            "100 euros", locale_hint="en_AE", tagged_currency="EUR", explicit_currency="inr",
        )
        assert (code, source) == ("INR", CurrencySource.EXPLICIT)


class TestTieBreak:
    """Tests for equal-length keyword matches."""

    def test_common_currency_preferred(self, dollar_tie_catalog):
        """Test that USD beats CAD although CAD comes first in the catalog."""
        detector = CurrencyDetector(dollar_tie_catalog)
        assert detector.detect_from_keywords("20 dollars") == "USD"

    def test_catalog_order_breaks_remaining_ties(self, peso_tie_catalog):
        """Test that the first currency in the catalog wins otherwise."""
        detector = CurrencyDetector(peso_tie_catalog)
        assert detector.detect_from_keywords("300 pesos") == "MXN"

    def test_whitelist_is_configurable(self, peso_tie_catalog):
        """Test a custom common list."""
        detector = CurrencyDetector(peso_tie_catalog, common_currencies=["PHP"])
        assert detector.detect_from_keywords("300 pesos") == "PHP"

    def test_longest_keyword_beats_whitelist(self):
        """Test that a longer keyword wins before the whitelist is consulted."""
        catalog = CurrencyCatalog.from_currencies([
            make_currency("USD", ["dollar", "dollars"]),
            make_currency("AUD", ["aussie dollars"], locale="en_AU"),
        ])
        detector = CurrencyDetector(catalog)
        assert detector.detect_from_keywords("40 aussie dollars") == "AUD"


class TestTextHelpers:
    """Tests for contains_currency and normalize_currency_symbols."""

    def test_contains_currency(self, detector):
        """Test currency presence checks."""
        assert detector.contains_currency("I paid 20 dirhams")
        assert detector.contains_currency("€5")
        assert not detector.contains_currency("I spent money on stuff")

    def test_contains_currency_degraded(self, degraded_catalog):
        """Test the fallback indicator list without a catalog."""
        detector = CurrencyDetector(degraded_catalog)
        assert detector.contains_currency("20 dollars")
        assert not detector.contains_currency("20 things")

    def test_normalize_currency_symbols(self, detector):
        """Test symbols are replaced by ISO codes."""
        assert detector.normalize_currency_symbols("$25 and €10") == "USD 25 and EUR 10"
        assert detector.normalize_currency_symbols("c$40") == "CAD 40"
        assert detector.normalize_currency_symbols("﷼100") == "SAR 100"
        assert detector.normalize_currency_symbols("rs. 500") == "rs. 500"
        assert detector.normalize_currency_symbols("no symbols") == "no symbols"


class TestFormatter:
    """Tests for CurrencyFormatter."""

    @pytest.fixture
    def formatter(self, catalog):
        return CurrencyFormatter(catalog)

    @pytest.mark.parametrize("code,expected", [
        ("USD", "$1,234.50"),
        ("GBP", "£1,234.50"),
        ("INR", "₹1,234.50"),
        ("EUR", "1,234.50€"),
        ("AED", "د.إ 1,234.50"),
        ("JPY", "¥ 1,234.50"),
    ])
    def test_symbol_placement(self, formatter, code, expected):
        """Test symbol position per currency."""
        assert formatter.format(Decimal("1234.5"), code) == expected

    def test_rounding_half_up(self, formatter):
        """Test two places with ROUND_HALF_UP."""
        assert formatter.format(Decimal("2.005"), "USD") == "$2.01"

    def test_without_symbol_with_code(self, formatter):
        """Test code-only output."""
        assert formatter.format(Decimal("10"), "USD", show_symbol=False, show_code=True) == "10.00 USD"

    def test_unknown_currency(self, formatter):
        """Test codes missing from the catalog fall back to the code."""
        assert formatter.format(Decimal("10"), "XYZ") == "XYZ 10.00"

    @pytest.mark.parametrize("code", ["USD", "EUR", "AED", "INR", "BHD", "CHF"])
    def test_round_trip(self, formatter, code):
        """Test that format then parse returns the canonical value."""
        amount = Decimal("98765.43")
        assert formatter.parse(formatter.format(amount, code), code) == amount

    def test_parse_without_currency(self, formatter):
        """Test parsing ignores unknown symbols and grouping."""
        assert formatter.parse("$1,000.5") == Decimal("1000.50")

    def test_parse_rejects_text_without_number(self, formatter):
        """Test that a missing number raises."""
        with pytest.raises(CurrencyFormatError):
            formatter.parse("no amount here")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
