"""
Shared fixtures.

The packaged catalog is loaded once per session; small hand-built
catalogs keep tie-break tests independent of the shipped data.
"""

from datetime import datetime

import pytest

from voice_expense.audit import AuditLogger, InMemoryAuditSink
from voice_expense.config import ParserSettings
from voice_expense.currency import CurrencyCatalog, CurrencyDetector
from voice_expense.models import Currency
from voice_expense.orchestrator import CommandParser


REFERENCE_TIME = datetime(2025, 3, 14, 12, 30)


def make_currency(code, keywords, symbol=None, locale="en_US", is_rtl=False):
    """Build a Currency without going through the JSON file."""
    return Currency(
        code=code,
        symbol=symbol or code,
        display_name=f"{code} currency",
        short_name=code,
        locale_identifier=locale,
        is_rtl=is_rtl,
        voice_keywords=keywords,
    )


@pytest.fixture(scope="session")
def settings():
    return ParserSettings(_env_file=None)


@pytest.fixture(scope="session")
def catalog(settings):
    catalog = CurrencyCatalog.load(settings.catalog_file)
    assert not catalog.is_degraded
    return catalog


@pytest.fixture(scope="session")
def detector(catalog, settings):
    return CurrencyDetector(
        catalog,
        common_currencies=settings.common_currency_codes,
        default_currency=settings.default_currency,
    )


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def audit_logger(audit_sink):
    return AuditLogger(audit_sink)


@pytest.fixture
def parser(catalog, settings, audit_logger):
    return CommandParser(catalog, settings=settings, audit_logger=audit_logger)


@pytest.fixture
def degraded_catalog(tmp_path):
    return CurrencyCatalog.load(tmp_path / "missing.json")


@pytest.fixture
def degraded_parser(degraded_catalog, settings, audit_logger):
    return CommandParser(degraded_catalog, settings=settings, audit_logger=audit_logger)


@pytest.fixture
def dollar_tie_catalog():
    """CAD is listed first, but USD is on the common whitelist."""
    return CurrencyCatalog.from_currencies([
        make_currency("CAD", ["cad", "dollar", "dollars"], locale="en_CA"),
        make_currency("USD", ["usd", "dollar", "dollars", "$"], symbol="$"),
    ])


@pytest.fixture
def peso_tie_catalog():
    """Neither currency is common; catalog order decides."""
    return CurrencyCatalog.from_currencies([
        make_currency("MXN", ["mxn", "peso", "pesos"], locale="es_MX"),
        make_currency("PHP", ["php", "peso", "pesos"], locale="en_PH"),
    ])

