"""
Data Models Package

This package contains all Pydantic models used by the parser.
All data flowing out of the system must conform to these schemas.
"""

from voice_expense.models.currency import (
    Currency,
    CurrencyCatalogFile,
)
from voice_expense.models.expense import (
    AmountMatch,
    AmountSource,
    CurrencySource,
    ExpenseCandidate,
    ExpenseCategory,
    ParsedExpense,
    ParseError,
    ParseErrorCode,
    ParseResult,
    ValidationIssue,
    ValidationResult,
    to_canonical_amount,
)
from voice_expense.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Currency models
    "Currency",
    "CurrencyCatalogFile",
    # Expense models
    "AmountMatch",
    "AmountSource",
    "CurrencySource",
    "ExpenseCandidate",
    "ExpenseCategory",
    "ParsedExpense",
    "ParseError",
    "ParseErrorCode",
    "ParseResult",
    "ValidationIssue",
    "ValidationResult",
    "to_canonical_amount",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
