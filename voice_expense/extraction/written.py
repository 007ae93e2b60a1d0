"""
Written Number Parser

Turns spoken number phrases into Decimal values:
    "two thousand five hundred"  -> 2500
    "five lakh fifty thousand"   -> 550000
    "two point five million"     -> 2500000

CRITICAL: Large scale words (thousand and up) flush. They multiply
everything accumulated since the previous flush, add the product to the
running total and start a new group. "two thousand" must be 2000, not
200.

DESIGN DECISION: Decimal mode ("point", "dot") collects digits into a
separate fraction. A scale word arriving in decimal mode folds that
fraction back into the current group first, so "two point five million"
scales 2.5 rather than 0.5.
"""

import re
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from voice_expense.currency.detector import token_alternation


logger = structlog.get_logger(__name__)


BASIC_NUMBERS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4,
    "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9,
    "ten": 10, "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}

TENS_NUMBERS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}

HUNDRED = Decimal(100)

LARGE_SCALES = {
    "thousand": Decimal(10) ** 3, "thousands": Decimal(10) ** 3,
    "lakh": Decimal(10) ** 5, "lakhs": Decimal(10) ** 5,
    "lac": Decimal(10) ** 5, "lacs": Decimal(10) ** 5,
    "million": Decimal(10) ** 6, "millions": Decimal(10) ** 6,
    "crore": Decimal(10) ** 7, "crores": Decimal(10) ** 7,
    "billion": Decimal(10) ** 9, "billions": Decimal(10) ** 9,
    "trillion": Decimal(10) ** 12, "trillions": Decimal(10) ** 12,
}

SCALE_WORDS = {"hundred", "hundreds"} | set(LARGE_SCALES)

DECIMAL_MARKERS = {"point", "dot"}

ACTION_WORDS = r"spent|spend|paid|pay|cost"

# Spans that usually hold the amount when no currency word closes them
PREPOSITION_AMOUNT_PATTERNS = (
    re.compile(r"\b(?:" + ACTION_WORDS + r")\s+(.*?)\s+(?:on|for|at)\b"),
    re.compile(r"^(.*?)\s+(?:for|on|at)\b"),
)

_TOKEN_STRIP = ".,!?;:'\"()"


def tokenize(text: str) -> list[str]:
    """Lower-case, treat hyphens as spaces and strip edge punctuation."""
    tokens = []
    for raw in text.lower().replace("-", " ").split():
        token = raw.strip(_TOKEN_STRIP)
        if token:
            tokens.append(token)
    return tokens


class WrittenNumberParser:
    """Parses number words with Western and Indian scale systems."""

    def __init__(self, currency_tokens: Iterable[str] = ()):
        """
        Initialize parser.

        Args:
            currency_tokens: Currency words that close an amount span,
                usually the detector's suffix tokens
        """
        tokens = sorted(set(currency_tokens), key=lambda token: (-len(token), token))
        patterns = []
        if tokens:
            patterns.append(re.compile(
                r"\b(?:" + ACTION_WORDS + r")\s+(.*?)\s+(?:"
                + token_alternation(tokens, word_edge_before=True) + r")"
            ))
        patterns.extend(PREPOSITION_AMOUNT_PATTERNS)
        self.command_patterns = tuple(patterns)

    def parse(self, text: str) -> Optional[Decimal]:
        """
        Parse the number words in `text`.

        Words that are not numbers are ignored; "and" is a connector.

        Returns:
            The value, or None if no number word contributed
        """
        total = Decimal(0)
        current = Decimal(0)
        fraction = Decimal(0)
        in_decimal = False
        decimal_places = 0
        open_tens = False  # a tens word in decimal mode still waiting for its unit
        contributed = False

        for token in tokenize(text):
            if token == "and":
                continue

            if token in DECIMAL_MARKERS:
                in_decimal = True
                continue

            if in_decimal:
                if token in SCALE_WORDS:
                    current += fraction
                    fraction = Decimal(0)
                    in_decimal = False
                    decimal_places = 0
                    open_tens = False
                elif token in BASIC_NUMBERS:
                    value = BASIC_NUMBERS[token]
                    if open_tens and 0 < value < 10:
                        fraction += Decimal(value) / (Decimal(10) ** decimal_places)
                        open_tens = False
                    elif value >= 10:
                        decimal_places += 2
                        fraction += Decimal(value) / (Decimal(10) ** decimal_places)
                        open_tens = False
                    else:
                        decimal_places += 1
                        fraction += Decimal(value) / (Decimal(10) ** decimal_places)
                        open_tens = False
                    contributed = True
                    continue
                elif token in TENS_NUMBERS:
                    decimal_places += 2
                    fraction += Decimal(TENS_NUMBERS[token]) / (Decimal(10) ** decimal_places)
                    open_tens = True
                    contributed = True
                    continue
                else:
                    continue

            if token in BASIC_NUMBERS:
                current += BASIC_NUMBERS[token]
                contributed = True
            elif token in TENS_NUMBERS:
                current += TENS_NUMBERS[token]
                contributed = True
            elif token in ("hundred", "hundreds"):
                if current == 0:
                    current = Decimal(1)
                current *= HUNDRED
                contributed = True
            elif token in LARGE_SCALES:
                if current == 0:
                    current = Decimal(1)
                total += current * LARGE_SCALES[token]
                current = Decimal(0)
                contributed = True

        if not contributed:
            return None
        return total + current + fraction

    def contains_number_phrase(self, text: str) -> bool:
        """Check if text holds any number or scale word."""
        return any(
            token in BASIC_NUMBERS or token in TENS_NUMBERS or token in SCALE_WORDS
            for token in tokenize(text)
        )

    def extract_amount_from_command(self, command: str) -> Optional[Decimal]:
        """
        Parse the amount of a whole voice command.

        The span between an action word and a currency word or
        preposition is tried first ("spent two thousand dirhams on
        groceries"), so numbers in the merchant or notes are not summed
        in. Falls back to the entire command.
        """
        normalized = command.lower().strip()
        for pattern in self.command_patterns:
            match = pattern.search(normalized)
            if match is None:
                continue
            value = self.parse(match.group(1))
            if value is not None:
                logger.debug("written_amount_span", span=match.group(1), value=str(value))
                return value
        return self.parse(normalized)
