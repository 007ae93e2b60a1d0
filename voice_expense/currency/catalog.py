"""
Currency Catalog

DESIGN DECISION: The catalog is built once at startup and handed to the
parser explicitly. There is no module-level singleton, so tests can
build small catalogs of their own.

Loading never raises at the caller. A missing or malformed file leaves
the catalog empty and flagged as degraded; currency detection then
falls back to locale defaults only.
"""

import json
import threading
from pathlib import Path
from typing import Iterable, Iterator, Optional

from pydantic import ValidationError

from voice_expense.audit import AuditLogger
from voice_expense.models.currency import Currency, CurrencyCatalogFile


# Regions without a catalog entry of their own that still map to a
# catalog currency.
REGION_CURRENCIES = {
    "US": "USD", "AE": "AED", "GB": "GBP", "IN": "INR", "SA": "SAR",
    # Euro area
    "AT": "EUR", "BE": "EUR", "CY": "EUR", "DE": "EUR", "EE": "EUR",
    "ES": "EUR", "FI": "EUR", "FR": "EUR", "GR": "EUR", "HR": "EUR",
    "IE": "EUR", "IT": "EUR", "LT": "EUR", "LU": "EUR", "LV": "EUR",
    "MT": "EUR", "NL": "EUR", "PT": "EUR", "SI": "EUR", "SK": "EUR",
}


class CatalogLoadError(Exception):
    """The currency catalog could not be loaded."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(message)


def region_from_locale(locale_hint: Optional[str]) -> Optional[str]:
    """
    Extract the region from a locale hint.

    Accepts 'en_AE', 'ar-AE', 'en_US_POSIX' or a bare region 'AE'.
    """
    if not locale_hint:
        return None
    parts = [p for p in locale_hint.strip().replace("-", "_").split("_") if p]
    if not parts:
        return None
    if len(parts) == 1:
        candidate = parts[0]
        return candidate.upper() if len(candidate) == 2 and candidate.isupper() else None
    for part in parts[1:]:
        if len(part) == 2 and part.isalpha():
            return part.upper()
    return None


class CurrencyCatalog:
    """
    Immutable table of supported currencies.

    Lifecycle:
    1. Construct (empty, not initialized)
    2. initialize() once - loads the JSON file
    3. Read-only afterwards; safe for concurrent readers
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger or AuditLogger()
        self._init_lock = threading.Lock()
        self._initialized = False
        self._currencies: tuple[Currency, ...] = ()
        self._by_code: dict[str, Currency] = {}
        self._version: Optional[str] = None
        self._last_updated: Optional[str] = None
        self._load_error: Optional[CatalogLoadError] = None

    # -------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------

    @classmethod
    def load(
        cls,
        path: Path,
        audit_logger: Optional[AuditLogger] = None,
    ) -> "CurrencyCatalog":
        """Build and initialize a catalog from a JSON file."""
        catalog = cls(audit_logger=audit_logger)
        catalog.initialize(path)
        return catalog

    @classmethod
    def from_currencies(
        cls,
        currencies: Iterable[Currency],
        version: str = "inline",
        audit_logger: Optional[AuditLogger] = None,
    ) -> "CurrencyCatalog":
        """Build an initialized catalog from already-constructed currencies."""
        catalog = cls(audit_logger=audit_logger)
        document = CurrencyCatalogFile(
            version=version,
            last_updated="",
            currencies=list(currencies),
        )
        with catalog._init_lock:
            catalog._install(document)
        return catalog

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    def initialize(self, path: Path) -> bool:
        """
        Load the catalog from `path`, exactly once.

        A second call is a no-op that logs a warning.

        Returns:
            True if the catalog holds currencies after the call
        """
        with self._init_lock:
            if self._initialized:
                self._audit_logger.log_catalog_reinitialization_ignored(len(self._currencies))
                return not self.is_degraded

            source = str(path)
            try:
                document = self._read_document(Path(path))
            except CatalogLoadError as e:
                self._load_error = e
                self._initialized = True
                self._audit_logger.log_catalog_load_failed(source, str(e))
                return False

            self._install(document)
            self._audit_logger.log_catalog_loaded(
                version=document.version,
                currency_count=len(document.currencies),
                source=source,
            )
            return not self.is_degraded

    def _read_document(self, path: Path) -> CurrencyCatalogFile:
        source = str(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise CatalogLoadError(source, f"Catalog file not found: {source}") from e
        except OSError as e:
            raise CatalogLoadError(source, f"Catalog file unreadable: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CatalogLoadError(source, f"Catalog file is not valid JSON: {e}") from e

        try:
            return CurrencyCatalogFile.model_validate(data)
        except ValidationError as e:
            raise CatalogLoadError(
                source,
                f"Catalog file does not match the expected schema: {e.error_count()} errors",
            ) from e

    def _install(self, document: CurrencyCatalogFile) -> None:
        self._currencies = tuple(document.currencies)
        self._by_code = {c.code: c for c in self._currencies}
        self._version = document.version
        self._last_updated = document.last_updated
        self._load_error = None
        self._initialized = True

    # -------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_degraded(self) -> bool:
        """True when no currencies are available (load failed or never ran)."""
        return not self._currencies

    @property
    def load_error(self) -> Optional[CatalogLoadError]:
        return self._load_error

    @property
    def version(self) -> Optional[str]:
        return self._version

    @property
    def last_updated(self) -> Optional[str]:
        return self._last_updated

    def require_loaded(self) -> None:
        """Raise CatalogLoadError if the catalog is degraded."""
        if self.is_degraded:
            if self._load_error is not None:
                raise self._load_error
            raise CatalogLoadError("<none>", "Currency catalog has not been initialized")

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------

    @property
    def currencies(self) -> tuple[Currency, ...]:
        return self._currencies

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(c.code for c in self._currencies)

    def __len__(self) -> int:
        return len(self._currencies)

    def __iter__(self) -> Iterator[Currency]:
        return iter(self._currencies)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.strip().upper() in self._by_code

    def get(self, code: Optional[str]) -> Optional[Currency]:
        """Find a currency by ISO code (case-insensitive)."""
        if not code:
            return None
        return self._by_code.get(code.strip().upper())

    def common(self, codes: Iterable[str]) -> list[Currency]:
        """Currencies of the given whitelist, in catalog order."""
        wanted = {c.upper() for c in codes}
        return [c for c in self._currencies if c.code in wanted]

    def currency_for_region(self, region: Optional[str]) -> Optional[str]:
        """
        Map a region to a currency code.

        Catalog locale identifiers are consulted first, then the
        built-in region table.
        """
        if not region:
            return None
        region = region.upper()
        for currency in self._currencies:
            if currency.region == region:
                return currency.code
        return REGION_CURRENCIES.get(region)

    def currency_for_locale(self, locale_hint: Optional[str]) -> Optional[str]:
        return self.currency_for_region(region_from_locale(locale_hint))
