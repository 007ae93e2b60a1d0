"""
Confidence Scorer

Heuristic reliability estimate for a transcript. The score is a pure
function of the text and does not look at extraction results, so a
caller can compute it before or after parsing.

Signals and weights:
- amount (digits or number words)    0.3
- category keyword                   0.3
- expense action word                0.2
- merchant preposition               0.1
- currency indicator                 0.1
"""

import re

from voice_expense.currency.detector import CurrencyDetector
from voice_expense.extraction.category import CategoryClassifier
from voice_expense.extraction.written import WrittenNumberParser


SIGNAL_WEIGHTS = {
    "amount": 0.3,
    "category": 0.3,
    "action": 0.2,
    "merchant": 0.1,
    "currency": 0.1,
}

ACTION_WORDS = re.compile(r"\b(?:spent|spend|paid|pay|cost|bought|purchase|buy)\b")
MERCHANT_PREPOSITIONS = re.compile(r"\b(?:at|from|to)\b")
DIGIT = re.compile(r"\d")


class ConfidenceScorer:
    """Weighted sum of independent presence signals, clamped to [0, 1]."""

    def __init__(
        self,
        detector: CurrencyDetector,
        classifier: CategoryClassifier,
        written_parser: WrittenNumberParser,
    ):
        self.detector = detector
        self.classifier = classifier
        self.written_parser = written_parser

    def signals(self, transcript: str) -> dict[str, bool]:
        text = transcript.strip().lower()
        return {
            "amount": bool(DIGIT.search(text)) or self.written_parser.contains_number_phrase(text),
            "category": self.classifier.has_category_keyword(text),
            "action": bool(ACTION_WORDS.search(text)),
            "merchant": bool(MERCHANT_PREPOSITIONS.search(text)),
            "currency": self.detector.contains_currency(text),
        }

    def score(self, transcript: str) -> float:
        total = sum(
            SIGNAL_WEIGHTS[name]
            for name, present in self.signals(transcript).items()
            if present
        )
        return round(min(max(total, 0.0), 1.0), 2)
