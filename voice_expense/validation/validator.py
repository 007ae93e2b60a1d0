"""
Two-Stage Expense Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount present
- Category present and non-blank
- Currency present

STAGE 2 - SEMANTIC VALIDATION:
- Amount inside [min_amount, max_amount]
- Currency supported by the catalog
- Advisory checks (rounding, degraded catalog)

Stage 2 only runs when stage 1 passes. The first error-level issue
decides the typed failure returned to the caller; warnings travel with
successful results.

IMPORTANT: Validation NEVER fixes a value. It reports.
"""

from decimal import InvalidOperation
from typing import Optional

from voice_expense.config import ParserSettings, get_settings
from voice_expense.currency.catalog import CurrencyCatalog
from voice_expense.models.expense import (
    ExpenseCandidate,
    ParseErrorCode,
    ValidationIssue,
    ValidationResult,
    to_canonical_amount,
)


DEGRADED_WARNING = "Currency catalog unavailable; only the locale default currency is accepted"


class ExpenseValidator:
    """
    Validates an ExpenseCandidate before a ParsedExpense is built.

    Stage 1: Schema validation
    Stage 2: Semantic validation (needs the catalog)
    """

    def __init__(
        self,
        catalog: CurrencyCatalog,
        settings: Optional[ParserSettings] = None,
    ):
        """
        Initialize validator.

        Args:
            catalog: Catalog used for the currency membership check
            settings: Limits; read from the environment if None
        """
        self._catalog = catalog
        self._settings = settings or get_settings().parser

    def _validate_schema(
        self,
        candidate: ExpenseCandidate,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if candidate.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="No amount was recognized in the transcript",
                severity="error",
                error_code=ParseErrorCode.AMOUNT_NOT_FOUND,
                suggested_fix="Say the amount as digits or words, e.g. 'twenty five dollars'",
            ))

        if candidate.category is None or not candidate.category.strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category cannot be empty",
                severity="error",
                error_code=ParseErrorCode.CATEGORY_MISSING,
            ))

        if not candidate.currency:
            issues.append(ValidationIssue(
                field="currency",
                issue_type="missing",
                message="No currency could be determined",
                severity="error",
                error_code=ParseErrorCode.UNSUPPORTED_CURRENCY,
            ))

        if candidate.confidence < self._settings.low_confidence_threshold:
            issues.append(ValidationIssue(
                field="confidence",
                issue_type="low_confidence",
                message=f"Parse confidence is low ({candidate.confidence:.0%})",
                severity="warning",
                suggested_fix="Please confirm the details before saving",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        candidate: ExpenseCandidate,
        fallback_currency: Optional[str],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Args:
            candidate: Candidate that passed stage 1
            fallback_currency: Locale/default currency, the only one
                accepted while the catalog is degraded

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        min_amount = self._settings.min_amount
        max_amount = self._settings.max_amount

        try:
            canonical = to_canonical_amount(candidate.amount)
        except InvalidOperation:
            canonical = None

        if canonical is not None and canonical != candidate.amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="rounded",
                message=f"Amount {candidate.amount} was rounded to {canonical}",
                severity="warning",
            ))

        if canonical is None or canonical < min_amount or canonical > max_amount:
            shown = candidate.amount if canonical is None else canonical
            issues.append(ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message=f"Amount {shown} is outside the accepted range {min_amount}-{max_amount}",
                severity="error",
                error_code=ParseErrorCode.AMOUNT_OUT_OF_RANGE,
            ))

        if self._catalog.is_degraded:
            issues.append(ValidationIssue(
                field="currency",
                issue_type="degraded",
                message=DEGRADED_WARNING,
                severity="warning",
                error_code=ParseErrorCode.CATALOG_LOAD_DEGRADED,
            ))
            supported = candidate.currency == fallback_currency
        else:
            supported = candidate.currency in self._catalog

        if not supported:
            issues.append(ValidationIssue(
                field="currency",
                issue_type="unsupported",
                message=f"Unsupported currency: {candidate.currency}",
                severity="error",
                error_code=ParseErrorCode.UNSUPPORTED_CURRENCY,
                suggested_fix="Use one of the supported currency codes",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(
        self,
        candidate: ExpenseCandidate,
        fallback_currency: Optional[str] = None,
    ) -> ValidationResult:
        """
        Run the two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        # Stage 1: Schema validation
        schema_valid, schema_issues = self._validate_schema(candidate)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(candidate, fallback_currency)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            candidate_id=candidate.candidate_id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Summary of the validation for people, not programs."""
        if result.is_valid and not result.warnings:
            return "✅ Expense understood."

        lines = []

        if result.has_errors:
            lines.append("❌ The expense could not be recorded:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
