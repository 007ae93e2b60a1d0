"""Validation of parsed expenses."""

from voice_expense.validation.validator import DEGRADED_WARNING, ExpenseValidator

__all__ = ["DEGRADED_WARNING", "ExpenseValidator"]
