"""
Merchant Extractor

Reads the merchant out of a prepositional phrase:
    "... at Carrefour for groceries"  -> "Carrefour"
    "... from Amazon"                 -> "Amazon"

Patterns are tried in priority order (at, from, to). The capture ends
at "for", "on" or the end of the transcript. Casing of the transcript
is preserved.
"""

import re
from typing import Optional


_NAME = r"([A-Za-z0-9\s'&.-]+?)"
_END = r"(?:\s+for\b|\s+on\b|$)"

MERCHANT_PATTERNS = tuple(
    re.compile(r"\b" + preposition + r"\s+" + _NAME + _END, re.IGNORECASE)
    for preposition in ("at", "from", "to")
)

_TRAILING_PUNCTUATION = ".,!?;:"


class MerchantExtractor:
    """Prepositional-phrase merchant extraction."""

    def __init__(self, min_length: int = 3, max_length: int = 100):
        self.min_length = min_length
        self.max_length = max_length

    def extract(self, transcript: str) -> Optional[str]:
        """
        Find the merchant name.

        Returns:
            The first capture whose trimmed length is within bounds, or None
        """
        text = transcript.strip().rstrip(_TRAILING_PUNCTUATION)
        for pattern in MERCHANT_PATTERNS:
            match = pattern.search(text)
            if match is None:
                continue
            merchant = match.group(1).strip().rstrip(_TRAILING_PUNCTUATION).strip()
            if self.min_length <= len(merchant) <= self.max_length:
                return merchant
        return None
