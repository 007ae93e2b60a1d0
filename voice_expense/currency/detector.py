"""
Currency Detector

Finds the currency of a transcript using the catalog's voice keywords.

Precedence:
1. Explicit currency supplied by the caller
2. Currency tagged by the numeric amount pattern
3. Longest matching voice keyword
4. Locale hint
5. Configured default

DESIGN DECISION: Short keywords (two characters or fewer) and keywords
holding symbol characters are matched as substrings, so "$25" and
"€12" are found without surrounding spaces. Longer word keywords need
word boundaries, so "sar" does not fire inside "necessary". Letter
abbreviations such as "rs" and "rs." need word boundaries as well.
"""

import re
from typing import Iterable, Optional

import structlog

from voice_expense.currency.catalog import CurrencyCatalog
from voice_expense.models.expense import CurrencySource


logger = structlog.get_logger(__name__)


# Used for the currency-presence signal when the catalog is unavailable
FALLBACK_CURRENCY_INDICATORS = (
    "$", "€", "£", "₹", "¥", "dollar", "dollars", "dirham", "dirhams",
    "euro", "euros", "pound", "pounds", "rupee", "rupees", "riyal", "riyals",
    "aed", "usd", "eur", "gbp", "inr", "sar",
)


_ABBREVIATION = re.compile(r"[a-z]{1,2}\.?")


def is_abbreviation(keyword: str) -> bool:
    """Short letter keywords such as 'rs' or 'rs.', matched as words."""
    return _ABBREVIATION.fullmatch(keyword) is not None


def is_substring_keyword(keyword: str) -> bool:
    """True if the keyword is matched by containment rather than as a word."""
    if is_abbreviation(keyword):
        return False
    if len(keyword) <= 2:
        return True
    return any(not (ch.isalnum() or ch.isspace()) for ch in keyword)


def compile_keyword(keyword: str) -> Optional[re.Pattern]:
    """Word-boundary pattern for a word keyword, None for substring keywords."""
    if is_substring_keyword(keyword):
        return None
    words = [re.escape(part) for part in keyword.split()]
    pattern = r"\b" + r"\s+".join(words)
    if keyword[-1].isalnum():
        pattern += r"\b"
    return re.compile(pattern)


def token_alternation(tokens: Iterable[str], word_edge_before: bool = True) -> str:
    """
    Regex alternation over currency tokens.

    Tokens starting or ending with a letter or digit may not touch
    another word character on that side, so 'rs' never fires inside
    'hours'. Symbols such as '$' stay free to touch the number.
    """
    parts = []
    for token in tokens:
        escaped = re.escape(token).replace(r"\ ", r"\s+")
        if word_edge_before and token[0].isalnum():
            escaped = r"(?<!\w)" + escaped
        if token[-1].isalnum():
            escaped = escaped + r"(?!\w)"
        parts.append(escaped)
    return "|".join(parts)


def keyword_in_text(text: str, keyword: str, pattern: Optional[re.Pattern] = None) -> bool:
    if pattern is None and not is_substring_keyword(keyword):
        pattern = compile_keyword(keyword)
    if pattern is None:
        return keyword in text
    return pattern.search(text) is not None


class CurrencyDetector:
    """
    Detects currencies against a CurrencyCatalog.

    The keyword table is compiled once at construction; detection is
    read-only and safe to share between threads.
    """

    def __init__(
        self,
        catalog: CurrencyCatalog,
        common_currencies: Iterable[str] = ("USD", "AED", "EUR", "GBP", "INR", "SAR"),
        default_currency: str = "USD",
    ):
        self.catalog = catalog
        self.common_currencies = tuple(c.upper() for c in common_currencies)
        self.default_currency = default_currency.upper()

        self._order = {currency.code: index for index, currency in enumerate(catalog)}
        # (keyword, compiled pattern or None, currency code)
        self._keywords: list[tuple[str, Optional[re.Pattern], str]] = []
        for currency in catalog:
            for keyword in currency.voice_keywords:
                self._keywords.append((keyword, compile_keyword(keyword), currency.code))
        self._keywords.sort(key=lambda entry: len(entry[0]), reverse=True)

    # -------------------------------------------------------------------
    # Tie-break
    # -------------------------------------------------------------------

    def pick(self, codes: Iterable[str]) -> Optional[str]:
        """
        Choose among currencies whose matches are equally strong.

        Common currencies come first, then catalog order.
        """
        candidates = list(dict.fromkeys(codes))
        if not candidates:
            return None
        return min(
            candidates,
            key=lambda code: (
                code not in self.common_currencies,
                self._order.get(code, len(self._order)),
            ),
        )

    # -------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------

    def find_keyword_matches(self, text: str) -> dict[str, str]:
        """
        Longest matching keyword per currency.

        Returns:
            Mapping of currency code to its longest matching keyword
        """
        text = text.lower()
        best: dict[str, str] = {}
        for keyword, pattern, code in self._keywords:
            if code in best:
                continue
            if keyword_in_text(text, keyword, pattern):
                best[code] = keyword
        return best

    def detect_from_keywords(self, text: str) -> Optional[str]:
        """Currency named in the text, or None."""
        matches = self.find_keyword_matches(text)
        if not matches:
            return None
        longest = max(len(keyword) for keyword in matches.values())
        return self.pick(code for code, keyword in matches.items() if len(keyword) == longest)

    def currency_for_locale(self, locale_hint: Optional[str]) -> tuple[str, CurrencySource]:
        """Currency implied by the locale hint, or the configured default."""
        code = self.catalog.currency_for_locale(locale_hint)
        if code is not None:
            return code, CurrencySource.LOCALE
        return self.default_currency, CurrencySource.DEFAULT

    def detect(
        self,
        text: str,
        locale_hint: Optional[str] = None,
        tagged_currency: Optional[str] = None,
        explicit_currency: Optional[str] = None,
    ) -> tuple[str, CurrencySource]:
        """
        Decide the currency of a transcript.

        Args:
            text: The transcript
            locale_hint: Caller locale such as 'en_AE'
            tagged_currency: Currency tagged by the amount pattern
            explicit_currency: Currency supplied by the caller

        Returns:
            (currency code, how it was decided)
        """
        if explicit_currency:
            return explicit_currency.strip().upper(), CurrencySource.EXPLICIT
        if tagged_currency:
            return tagged_currency, CurrencySource.PATTERN

        code = self.detect_from_keywords(text)
        if code is not None:
            return code, CurrencySource.KEYWORD

        code, source = self.currency_for_locale(locale_hint)
        logger.debug("currency_fallback", currency=code, source=source.value, locale=locale_hint)
        return code, source

    # -------------------------------------------------------------------
    # Token helpers for the numeric extractor
    # -------------------------------------------------------------------

    def currencies_for_token(self, token: str) -> list[str]:
        """Currencies that own `token` as a voice keyword."""
        token = token.lower()
        return [code for keyword, _, code in self._keywords if keyword == token]

    def resolve_token(self, token: str) -> Optional[str]:
        return self.pick(self.currencies_for_token(token))

    def prefix_tokens(self) -> list[str]:
        """Symbols, short keywords, abbreviations and ISO code keywords that may precede a number."""
        tokens = {
            keyword for keyword, pattern, code in self._keywords
            if pattern is None or keyword == code.lower() or is_abbreviation(keyword)
        }
        return sorted(tokens, key=lambda token: (-len(token), token))

    def suffix_tokens(self) -> list[str]:
        """Every keyword that may follow a number."""
        tokens = {keyword for keyword, _, _ in self._keywords}
        return sorted(tokens, key=lambda token: (-len(token), token))

    # -------------------------------------------------------------------
    # Text helpers
    # -------------------------------------------------------------------

    def contains_currency(self, text: str) -> bool:
        """True if any currency keyword, symbol or ISO code appears in the text."""
        lowered = text.lower()
        if self.catalog.is_degraded:
            return any(keyword_in_text(lowered, keyword) for keyword in FALLBACK_CURRENCY_INDICATORS)
        return bool(self.find_keyword_matches(lowered))

    def normalize_currency_symbols(self, text: str) -> str:
        """
        Replace symbol keywords by ISO codes.

        '$25 and €10' becomes 'USD 25 and EUR 10'. Longer symbols are
        replaced first so 'c$' is not read as '$'.
        """
        symbols = [
            keyword for keyword, pattern, _ in self._keywords
            if pattern is None and not keyword.isalnum()
        ]
        if not symbols:
            return text
        alternation = "|".join(re.escape(symbol) for symbol in symbols)
        symbol_pattern = re.compile(r"(" + alternation + r")\s*", re.IGNORECASE)

        def replace(match: re.Match) -> str:
            code = self.resolve_token(match.group(1))
            return f"{code} " if code else match.group(0)

        return symbol_pattern.sub(replace, text)
