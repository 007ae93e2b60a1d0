"""Extractors that read expense fields out of a transcript."""

from voice_expense.extraction.category import CATEGORY_KEYWORDS, CategoryClassifier
from voice_expense.extraction.confidence import SIGNAL_WEIGHTS, ConfidenceScorer
from voice_expense.extraction.context import extract_notes, extract_occurred_at
from voice_expense.extraction.merchant import MerchantExtractor
from voice_expense.extraction.numeric import (
    NumericAmountExtractor,
    NumericExtraction,
    expand_digit_scales,
)
from voice_expense.extraction.written import WrittenNumberParser

__all__ = [
    "CATEGORY_KEYWORDS",
    "SIGNAL_WEIGHTS",
    "CategoryClassifier",
    "ConfidenceScorer",
    "MerchantExtractor",
    "NumericAmountExtractor",
    "NumericExtraction",
    "WrittenNumberParser",
    "expand_digit_scales",
    "extract_notes",
    "extract_occurred_at",
]
