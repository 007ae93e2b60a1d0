"""
Category Classifier

Ordered keyword sets, checked top to bottom. The first set with a
match decides the category; nothing matching means Other.

Order is priority: Food & Dining is checked before Grocery, so
"food shopping" is Food & Dining.

DESIGN DECISION: Keywords match as whole words by default, allowing a
plural "s"/"es" suffix. Substring matching made "car" fire inside
"scary"; it stays available as the "substring" mode.
"""

import re
from typing import Literal, Optional

from voice_expense.models.expense import ExpenseCategory


CATEGORY_KEYWORDS: tuple[tuple[ExpenseCategory, tuple[str, ...]], ...] = (
    (ExpenseCategory.FOOD_DINING, (
        "food", "tea", "coffee", "lunch", "dinner", "breakfast", "restaurant",
        "meal", "drink", "cafe", "dining", "eat", "ate", "snack", "brunch",
        "takeout", "takeaway", "delivery", "pizza", "burger", "sandwich",
        "sushi", "dessert", "ice cream", "bakery", "starbucks", "mcdonald",
    )),
    (ExpenseCategory.GROCERY, (
        "grocery", "groceries", "supermarket", "market", "food shopping",
        "vegetables", "fruits", "produce", "walmart", "carrefour", "lulu",
    )),
    (ExpenseCategory.TRANSPORTATION, (
        "gas", "fuel", "taxi", "uber", "transport", "transportation", "parking",
        "petrol", "toll", "careem", "lyft", "metro", "subway", "train", "bus",
        "diesel", "station", "refuel", "fill up", "car", "vehicle", "ride",
        "trip", "travel", "flight", "airline", "ticket",
    )),
    (ExpenseCategory.SHOPPING, (
        "shopping", "clothes", "clothing", "store", "mall", "purchase", "buy", "bought",
        "shoes", "accessories", "fashion", "retail", "amazon", "online shopping",
        "electronics", "gadget", "phone", "laptop",
    )),
    (ExpenseCategory.ENTERTAINMENT, (
        "movie", "cinema", "concert", "entertainment", "fun", "games", "theatre",
        "sports", "gym", "fitness", "netflix", "streaming", "spotify", "music",
        "hobby", "recreation", "amusement", "park",
    )),
    (ExpenseCategory.BILLS_UTILITIES, (
        "bill", "bills", "rent", "utility", "utilities", "electricity", "water",
        "internet", "subscription", "insurance", "mortgage", "loan",
        "payment", "recurring", "monthly", "annual",
    )),
    (ExpenseCategory.HEALTHCARE, (
        "healthcare", "health", "doctor", "hospital", "medicine", "medical",
        "pharmacy", "clinic", "prescription", "dentist", "therapy", "checkup",
        "emergency", "surgery", "treatment",
    )),
    (ExpenseCategory.EDUCATION, (
        "education", "school", "course", "training", "books", "learning", "tuition",
        "college", "university", "class", "workshop", "seminar", "certification",
        "textbook", "supplies", "fees",
    )),
)

MatchMode = Literal["word", "substring"]


def _word_pattern(keyword: str) -> re.Pattern:
    words = r"\s+".join(re.escape(part) for part in keyword.split())
    return re.compile(r"\b" + words + r"(?:s|es)?\b")


class CategoryClassifier:
    """Maps a transcript to one of the fixed expense categories."""

    def __init__(self, match_mode: MatchMode = "word"):
        if match_mode not in ("word", "substring"):
            raise ValueError(f"Unknown category match mode: {match_mode}")
        self.match_mode = match_mode
        self._patterns = {
            keyword: _word_pattern(keyword)
            for _, keywords in CATEGORY_KEYWORDS
            for keyword in keywords
        }

    def _matches(self, text: str, keyword: str) -> bool:
        if self.match_mode == "substring":
            return keyword in text
        return self._patterns[keyword].search(text) is not None

    def matching_keyword(self, text: str) -> Optional[tuple[ExpenseCategory, str]]:
        """First (category, keyword) hit in priority order."""
        lowered = text.lower()
        for category, keywords in CATEGORY_KEYWORDS:
            for keyword in keywords:
                if self._matches(lowered, keyword):
                    return category, keyword
        return None

    def classify(self, text: str) -> ExpenseCategory:
        hit = self.matching_keyword(text)
        return hit[0] if hit else ExpenseCategory.OTHER

    def has_category_keyword(self, text: str) -> bool:
        return self.matching_keyword(text) is not None
