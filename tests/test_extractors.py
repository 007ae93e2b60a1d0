"""
Tests for category, merchant, context and confidence extraction.
"""

from datetime import datetime, timedelta

import pytest

from voice_expense.extraction import (
    CategoryClassifier,
    ConfidenceScorer,
    MerchantExtractor,
    WrittenNumberParser,
    extract_notes,
    extract_occurred_at,
)
from voice_expense.models import ExpenseCategory

from conftest import REFERENCE_TIME


class TestCategoryClassifier:
    """Tests for the ordered keyword lookup."""

    @pytest.fixture
    def classifier(self):
        return CategoryClassifier()

    @pytest.mark.parametrize("text,category", [
        ("I just spent 25 dollars on food", ExpenseCategory.FOOD_DINING),
        ("coffee at starbucks", ExpenseCategory.FOOD_DINING),
        ("50 dirhams for groceries at carrefour", ExpenseCategory.GROCERY),
        ("I spent 30 dollars on gas", ExpenseCategory.TRANSPORTATION),
        ("uber to the airport", ExpenseCategory.TRANSPORTATION),
        ("new shoes at the mall", ExpenseCategory.SHOPPING),
        ("netflix subscription", ExpenseCategory.ENTERTAINMENT),
        ("paid the electricity bill", ExpenseCategory.BILLS_UTILITIES),
        ("pharmacy run", ExpenseCategory.HEALTHCARE),
        ("university tuition", ExpenseCategory.EDUCATION),
        ("I spent money on stuff", ExpenseCategory.OTHER),
    ])
    def test_classify(self, classifier, text, category):
        """Test the category of typical commands."""
        assert classifier.classify(text) == category

    def test_food_shopping_is_food(self, classifier):
        """Test that Food & Dining is checked before Grocery."""
        assert classifier.classify("food shopping") == ExpenseCategory.FOOD_DINING

    def test_word_mode_ignores_embedded_keywords(self, classifier):
        """Test that 'car' does not fire inside 'scary'."""
        assert classifier.classify("a scary amount") == ExpenseCategory.OTHER

    def test_word_mode_accepts_plurals(self, classifier):
        """Test the plural suffix."""
        assert classifier.classify("two pizzas") == ExpenseCategory.FOOD_DINING
        assert classifier.classify("bus passes") == ExpenseCategory.TRANSPORTATION

    def test_substring_mode(self):
        """Test the substring mode keeps containment matching."""
        classifier = CategoryClassifier("substring")
        assert classifier.classify("a scary amount") == ExpenseCategory.TRANSPORTATION

    def test_unknown_mode_rejected(self):
        """Test that only the two modes exist."""
        with pytest.raises(ValueError):
            CategoryClassifier("fuzzy")

    def test_matching_keyword(self, classifier):
        """Test the keyword that decided is reported."""
        assert classifier.matching_keyword("lunch with Sam") == (ExpenseCategory.FOOD_DINING, "lunch")
        assert classifier.matching_keyword("nothing here") is None


class TestMerchantExtractor:
    """Tests for prepositional merchant extraction."""

    @pytest.fixture
    def extractor(self):
        return MerchantExtractor()

    @pytest.mark.parametrize("text,merchant", [
        ("I spent 25 dollars on food at Starbucks", "Starbucks"),
        ("I spent two thousand dirhams at Carrefour for groceries", "Carrefour"),
        ("bought a charger from Amazon", "Amazon"),
        ("sent 40 dollars to Joe's Pizza on friday", "Joe's Pizza"),
        ("dinner at Marks & Spencer.", "Marks & Spencer"),
        ("I paid 50 dollars for groceries at the supermarket", "the supermarket"),
    ])
    def test_extract(self, extractor, text, merchant):
        """Test merchant capture with original casing."""
        assert extractor.extract(text) == merchant

    def test_too_short_capture_is_skipped(self, extractor):
        """Test that captures shorter than three characters are rejected."""
        assert extractor.extract("lunch at KF") is None

    def test_no_preposition(self, extractor):
        """Test commands without a merchant phrase."""
        assert extractor.extract("I spent 30 dollars on gas") is None

    def test_preposition_must_be_a_word(self, extractor):
        """Test that 'at' inside 'that' is not a preposition."""
        assert extractor.extract("that was expensive") is None

    def test_length_bounds_are_configurable(self):
        """Test a custom maximum length."""
        assert MerchantExtractor(max_length=5).extract("coffee at Starbucks") is None


class TestContext:
    """Tests for notes and date hints."""

    def test_notes_after_for(self):
        """Test notes are the text after 'for'."""
        assert extract_notes("I paid 25 dirhams for lunch with the team") == "lunch with the team"

    def test_notes_after_note_marker(self):
        """Test the 'note:' marker."""
        assert extract_notes("20 dollars note: split with Ana") == "split with Ana"

    def test_no_notes(self):
        """Test commands without notes."""
        assert extract_notes("I spent 30 dollars on gas") is None

    def test_notes_too_long(self):
        """Test notes longer than the limit are dropped."""
        assert extract_notes("5 dollars for " + "x" * 501) is None

    def test_yesterday(self):
        """Test 'yesterday' is one day before the reference."""
        occurred = extract_occurred_at("spent 10 dollars yesterday", REFERENCE_TIME)
        assert occurred == REFERENCE_TIME - timedelta(days=1)

    @pytest.mark.parametrize("phrase,hour", [
        ("this morning", 9),
        ("this afternoon", 14),
        ("this evening", 19),
    ])
    def test_time_of_day(self, phrase, hour):
        """Test time-of-day hints pin the hour on the reference day."""
        occurred = extract_occurred_at(f"coffee {phrase}", REFERENCE_TIME)
        assert occurred == datetime(2025, 3, 14, hour, 0)

    def test_default_is_reference_time(self):
        """Test that no hint means now."""
        assert extract_occurred_at("coffee", REFERENCE_TIME) == REFERENCE_TIME


class TestConfidenceScorer:
    """Tests for the weighted heuristic."""

    @pytest.fixture
    def scorer(self, detector):
        return ConfidenceScorer(detector, CategoryClassifier(), WrittenNumberParser())

    def test_full_command_beats_vague_command(self, scorer):
        """Test that a complete command scores higher."""
        full = scorer.score("I spent 25 dollars on food at Starbucks")
        vague = scorer.score("I spent money on stuff")
        assert full > vague

    def test_all_signals(self, scorer):
        """Test the maximum score."""
        assert scorer.score("I spent 25 dollars on food at Starbucks") == 1.0

    def test_individual_weights(self, scorer):
        """Test each signal's contribution."""
        assert scorer.score("I spent money on stuff") == 0.2
        assert scorer.score("25") == 0.3
        assert scorer.score("twenty five") == 0.3
        assert scorer.score("lunch") == 0.3
        assert scorer.score("dirhams") == 0.1
        assert scorer.score("at home") == 0.1
        assert scorer.score("") == 0.0

    def test_signals_report(self, scorer):
        """Test the signal breakdown."""
        signals = scorer.signals("paid 20 euros at the cinema")
        assert signals == {
            "amount": True,
            "category": True,
            "action": True,
            "merchant": True,
            "currency": True,
        }

    def test_score_is_pure(self, scorer):
        """Test the same transcript always scores the same."""
        text = "bought coffee for 5 dollars"
        assert scorer.score(text) == scorer.score(text)
        assert 0.0 <= scorer.score(text) <= 1.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
