"""
Numeric Amount Extractor

Recognizes digit-formatted amounts with an ordered cascade of patterns,
most specific first:

1. symbol_prefixed           "$25.50", "₹ 20", "aed 100", "c$40"
2. keyword_suffixed_decimal  "25.50 dollars", "12.5€"
3. keyword_suffixed_whole    "1,000 dirhams", "80 canadian dollars"
4. bare_decimal              "1,234.56", "25.5"
5. bare_integer              "2000", "1,234"

The first stage whose first match lies inside the amount range wins.
An out-of-range match is recorded and the cascade moves on.

DESIGN DECISION: Currency tokens come from the catalog and are tried
longest-first, so "canadian dollars" beats "dollars" and "c$" beats "$".
"""

import re
from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from voice_expense.currency.detector import CurrencyDetector, token_alternation
from voice_expense.models.expense import AmountMatch, to_canonical_amount


logger = structlog.get_logger(__name__)


# Grouped with thousands separators, or plain digits
_GROUPED = r"\d{1,3}(?:,\d{3})+"
WHOLE = r"(?:" + _GROUPED + r"|\d+)"
DECIMAL_1_2 = WHOLE + r"\.\d{1,2}"
ANY_NUMBER = WHOLE + r"(?:\.\d+)?"

# A number may not start inside another number
_NUMBER_START = r"(?<![\d.,])"
# ...nor stop in the middle of one
_NUMBER_END = r"(?![\d]|[.,]\d)"

DIGIT_SCALES = {
    "hundred": Decimal(10) ** 2,
    "thousand": Decimal(10) ** 3,
    "lakh": Decimal(10) ** 5, "lakhs": Decimal(10) ** 5,
    "lac": Decimal(10) ** 5, "lacs": Decimal(10) ** 5,
    "million": Decimal(10) ** 6,
    "crore": Decimal(10) ** 7, "crores": Decimal(10) ** 7,
    "billion": Decimal(10) ** 9,
    "trillion": Decimal(10) ** 12,
}

_DIGIT_SCALE_PATTERN = re.compile(
    _NUMBER_START + r"(" + ANY_NUMBER + r")\s*("
    + "|".join(sorted(DIGIT_SCALES, key=len, reverse=True))
    + r")\b"
)


class AmountStage(NamedTuple):
    """One matcher of the cascade."""
    name: str
    pattern: re.Pattern
    currency_tagged: bool


class NumericExtraction(BaseModel):
    """Outcome of running the cascade over one text."""
    model_config = ConfigDict(frozen=True)

    match: Optional[AmountMatch] = None
    rejected_amounts: list[Decimal] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.match is not None


def expand_digit_scales(text: str) -> str:
    """
    Expand digit + scale word phrases into plain digits.

    Speech-to-text often yields "2 thousand" or "2.5 million"; without
    this step the cascade would only see the leading digit.
    """
    def replace(match: re.Match) -> str:
        try:
            value = Decimal(match.group(1).replace(",", "")) * DIGIT_SCALES[match.group(2)]
        except InvalidOperation:
            return match.group(0)
        if value == value.to_integral_value():
            return str(int(value))
        return format(value.normalize(), "f")

    return _DIGIT_SCALE_PATTERN.sub(replace, text)


def to_amount(raw: str) -> Optional[Decimal]:
    """Strip thousands separators and convert, or None."""
    try:
        return Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None


class NumericAmountExtractor:
    """
    Ordered regex cascade over normalized (trimmed, lower-cased) text.

    Stages are compiled once from the detector's currency tokens.
    """

    def __init__(
        self,
        detector: CurrencyDetector,
        min_amount: Decimal = Decimal("0.01"),
        max_amount: Decimal = Decimal("999999.99"),
    ):
        self.detector = detector
        self.min_amount = min_amount
        self.max_amount = max_amount
        self.stages = self._build_stages()

    def _build_stages(self) -> list[AmountStage]:
        stages = []
        prefix = self.detector.prefix_tokens()
        suffix = self.detector.suffix_tokens()

        if prefix:
            stages.append(AmountStage(
                "symbol_prefixed",
                re.compile(
                    r"(" + token_alternation(prefix, word_edge_before=True) + r")\s*"
                    + r"(" + ANY_NUMBER + r")" + _NUMBER_END
                ),
                True,
            ))
        if suffix:
            suffix_alternation = token_alternation(suffix, word_edge_before=False)
            stages.append(AmountStage(
                "keyword_suffixed_decimal",
                re.compile(
                    _NUMBER_START + r"(" + DECIMAL_1_2 + r")" + _NUMBER_END
                    + r"\s*(" + suffix_alternation + r")"
                ),
                True,
            ))
            stages.append(AmountStage(
                "keyword_suffixed_whole",
                re.compile(
                    _NUMBER_START + r"(" + WHOLE + r")" + _NUMBER_END
                    + r"\s*(" + suffix_alternation + r")"
                ),
                True,
            ))
        stages.append(AmountStage(
            "bare_decimal",
            re.compile(_NUMBER_START + r"(" + WHOLE + r"\.\d+)" + _NUMBER_END),
            False,
        ))
        stages.append(AmountStage(
            "bare_integer",
            re.compile(_NUMBER_START + r"(" + WHOLE + r")" + _NUMBER_END),
            False,
        ))
        return stages

    def in_range(self, value: Decimal) -> bool:
        return self.min_amount <= value <= self.max_amount

    def _read(self, stage: AmountStage, match: re.Match) -> tuple[Optional[Decimal], Optional[str]]:
        if stage.name == "symbol_prefixed":
            token, number = match.group(1), match.group(2)
        elif stage.currency_tagged:
            number, token = match.group(1), match.group(2)
        else:
            number, token = match.group(1), None

        currency_code = None
        if token is not None:
            currency_code = self.detector.resolve_token(re.sub(r"\s+", " ", token))
        return to_amount(number), currency_code

    def extract(self, text: str) -> NumericExtraction:
        """
        Run the cascade.

        Args:
            text: Normalized transcript

        Returns:
            NumericExtraction with the winning match (if any) and the
            out-of-range values seen along the way
        """
        text = expand_digit_scales(text.strip().lower())
        rejected: list[Decimal] = []

        for stage in self.stages:
            match = stage.pattern.search(text)
            if match is None:
                continue

            value, currency_code = self._read(stage, match)
            if value is None:
                continue

            try:
                value = to_canonical_amount(value)
            except InvalidOperation:
                # More digits than the decimal context holds
                logger.debug("amount_not_representable", stage=stage.name, raw=match.group(0))
                if value not in rejected:
                    rejected.append(value)
                continue
            if not self.in_range(value):
                logger.debug("amount_out_of_range", stage=stage.name, value=str(value))
                if value not in rejected:
                    rejected.append(value)
                continue

            return NumericExtraction(
                match=AmountMatch(
                    value=value,
                    pattern=stage.name,
                    currency_code=currency_code,
                    matched_text=match.group(0),
                ),
                rejected_amounts=rejected,
            )

        return NumericExtraction(rejected_amounts=rejected)
