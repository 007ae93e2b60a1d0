"""
Core Data Models for Voice Expense

These models define the strict schemas for everything flowing out of
the parser. They are designed to:
1. Enforce the record invariants at construction time
2. Provide clear validation error messages
3. Be serializable into the output contract
4. Support the audit trail (the transcript is kept verbatim)

DESIGN DECISION: ExpenseCandidate is the permissive draft the extractors
fill in. ParsedExpense is only built after validation succeeded, and it
is frozen so nobody downstream can mutate it.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)


CENT = Decimal("0.01")


def to_canonical_amount(value: Decimal) -> Decimal:
    """Quantize an amount to exactly two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    The values are the user-facing labels shared with the mobile apps.
    """
    FOOD_DINING = "Food & Dining"
    GROCERY = "Grocery"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS_UTILITIES = "Bills & Utilities"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    OTHER = "Other"


class AmountSource(str, Enum):
    """Which extractor produced the amount."""
    NUMERIC = "numeric"
    WRITTEN = "written"


class CurrencySource(str, Enum):
    """How the currency was decided."""
    PATTERN = "pattern"      # Tagged by the numeric pattern that matched
    KEYWORD = "keyword"      # Found by scanning voice keywords
    EXPLICIT = "explicit"    # Supplied by the caller
    LOCALE = "locale"        # Derived from the locale hint
    DEFAULT = "default"      # Configured fallback


class ParseErrorCode(str, Enum):
    """
    Failure taxonomy of a parse.

    CATALOG_LOAD_DEGRADED is non-fatal: it is reported as a warning on
    successful results and only becomes an error when a caller asks the
    catalog to be loaded.
    """
    AMOUNT_NOT_FOUND = "AmountNotFound"
    AMOUNT_OUT_OF_RANGE = "AmountOutOfRange"
    UNSUPPORTED_CURRENCY = "UnsupportedCurrency"
    CATALOG_LOAD_DEGRADED = "CatalogLoadDegraded"
    CATEGORY_MISSING = "CategoryMissing"


# =============================================================================
# EXTRACTION MODELS
# =============================================================================

class AmountMatch(BaseModel):
    """An amount recognized by the numeric pattern cascade."""
    model_config = ConfigDict(frozen=True)

    value: Decimal
    pattern: str = Field(
        ...,
        description="Name of the cascade stage that matched"
    )
    currency_code: Optional[str] = Field(
        default=None,
        description="Currency tagged by the matched pattern, if any"
    )
    matched_text: str = ""


class ExpenseCandidate(BaseModel):
    """
    Data gathered by the extractors.

    CRITICAL: This is PROPOSED data, NOT validated.
    All fields are optional because any extractor might come back empty.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    candidate_id: UUID = Field(default_factory=uuid4)
    transcript: str

    amount: Optional[Decimal] = None
    amount_source: Optional[AmountSource] = None
    rejected_amounts: list[Decimal] = Field(
        default_factory=list,
        description="Matches that fell outside the accepted range"
    )

    currency: Optional[str] = None
    currency_source: Optional[CurrencySource] = None

    category: Optional[str] = None
    merchant: Optional[str] = None
    notes: Optional[str] = None
    occurred_at: Optional[datetime] = None

    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


# =============================================================================
# CORE EXPENSE MODEL
# =============================================================================

class ParsedExpense(BaseModel):
    """
    A structured expense produced from one transcript.

    Only built after validation passed. Frozen: no mutation after
    construction.
    """
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount with exactly two decimal places"
    )
    currency: str = Field(
        ...,
        pattern="^[A-Z]{3}$",
        description="ISO 4217 code present in the catalog"
    )
    category: ExpenseCategory
    merchant: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=100,
    )
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Heuristic reliability estimate (0-1)"
    )
    transcript: str = Field(
        ...,
        description="Original input, kept verbatim"
    )

    notes: Optional[str] = Field(default=None, max_length=500)
    occurred_at: Optional[datetime] = None
    amount_source: AmountSource = AmountSource.NUMERIC
    currency_source: CurrencySource = CurrencySource.DEFAULT

    @field_validator("amount")
    @classmethod
    def canonical_amount(cls, v: Decimal) -> Decimal:
        return to_canonical_amount(v)

    @field_serializer("amount")
    def serialize_amount(self, v: Decimal) -> str:
        return f"{v:.2f}"

    def to_contract(self) -> dict[str, Any]:
        """Output contract shared with the platform collaborators."""
        return {
            "amount": f"{self.amount:.2f}",
            "currency": self.currency,
            "category": self.category.value,
            "merchant": self.merchant,
            "confidence": self.confidence,
            "transcript": self.transcript,
        }


class ParseError(BaseModel):
    """Typed failure identifying which stage of the parse failed."""
    model_config = ConfigDict(frozen=True)

    code: ParseErrorCode
    stage: str = Field(
        ...,
        pattern="^(amount|currency|category|catalog)$",
    )
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ParseResult(BaseModel):
    """
    Tagged result of CommandParser.parse.

    Exactly one of `expense` / `error` is set.
    """
    model_config = ConfigDict(frozen=True)

    correlation_id: UUID = Field(default_factory=uuid4)
    transcript: str
    expense: Optional[ParsedExpense] = None
    error: Optional[ParseError] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    degraded: bool = Field(
        default=False,
        description="The currency catalog was unavailable for this parse"
    )
    warnings: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def exactly_one_outcome(self) -> "ParseResult":
        if (self.expense is None) == (self.error is None):
            raise ValueError("ParseResult needs exactly one of expense or error")
        return self

    @property
    def succeeded(self) -> bool:
        return self.expense is not None

    @property
    def error_code(self) -> Optional[ParseErrorCode]:
        return self.error.code if self.error else None

    def to_contract(self) -> dict[str, Any]:
        """Success or failure payload of the output contract."""
        if self.expense is not None:
            return self.expense.to_contract()
        return {
            "code": self.error.code.value,
            "stage": self.error.stage,
            "message": self.error.message,
        }


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'out_of_range', 'unsupported')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    error_code: Optional[ParseErrorCode] = Field(
        default=None,
        description="Failure code reported to the caller for error issues"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (required values present)
    Stage 2: Semantic validation (range and catalog checks)
    """

    candidate_id: UUID
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def first_error(self) -> Optional[ValidationIssue]:
        """The blocking issue reported to the caller."""
        for issue in self.issues:
            if issue.severity == "error":
                return issue
        return None
