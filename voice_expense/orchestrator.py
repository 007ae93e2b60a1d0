"""
Main Orchestrator for Voice Expense

Ties the extractors together into one parse call:

    transcript -> amount -> currency -> category -> merchant
               -> notes/date -> confidence -> validation -> ParseResult

DESIGN DECISION: The orchestrator enforces the boundaries:
- Numeric extraction always runs first and wins when it succeeds
- Spoken numbers are only tried when no digits give an in-range amount
- Failures come back as typed ParseError values, never as exceptions
- Every step is audited under one correlation id

The parser holds no per-call state. One instance can serve any number
of threads once the catalog is loaded.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional
from uuid import UUID

from voice_expense.audit import AuditLogger, AuditSinkInterface, create_correlation_id
from voice_expense.config import ParserSettings, get_settings
from voice_expense.currency.catalog import CurrencyCatalog, region_from_locale
from voice_expense.currency.detector import CurrencyDetector
from voice_expense.extraction.category import CategoryClassifier
from voice_expense.extraction.confidence import ConfidenceScorer
from voice_expense.extraction.context import extract_notes, extract_occurred_at
from voice_expense.extraction.merchant import MerchantExtractor
from voice_expense.extraction.numeric import NumericAmountExtractor
from voice_expense.extraction.written import WrittenNumberParser
from voice_expense.models.expense import (
    AmountSource,
    CurrencySource,
    ExpenseCandidate,
    ExpenseCategory,
    ParsedExpense,
    ParseError,
    ParseErrorCode,
    ParseResult,
    ValidationIssue,
)
from voice_expense.validation import DEGRADED_WARNING, ExpenseValidator


BASE_PHRASES = (
    "I just spent 25 dollars on food",
    "I paid 50 dollars for groceries at the supermarket",
    "Log 15 dollars for lunch",
    "I spent 30 dollars on gas",
    "I bought coffee for 5 dollars",
    "Add 100 dollars shopping expense",
    "I just paid 20 dollars for entertainment",
)

# Region -> (currency word replacing "dollars", extra phrases)
REGIONAL_PHRASES = {
    "AE": ("dirhams", (
        "I just spent 50 AED on groceries",
        "I paid 25 dirhams for lunch",
        "Log 100 AED for shopping",
    )),
    "GB": ("pounds", (
        "I just spent 20 pounds on petrol",
        "I paid 15 pounds for lunch",
    )),
}


# =============================================================================
# ERRORS
# =============================================================================

class ExpenseParseError(Exception):
    """Base exception for a failed parse stage."""

    code: ParseErrorCode = ParseErrorCode.AMOUNT_NOT_FOUND
    stage: str = "amount"

    def __init__(self, message: str, detail: Optional[dict[str, Any]] = None):
        self.message = message
        self.detail = detail or {}
        super().__init__(message)

    def to_parse_error(self) -> ParseError:
        return ParseError(
            code=self.code,
            stage=self.stage,
            message=self.message,
            detail=self.detail,
        )


class AmountNotFoundError(ExpenseParseError):
    """Neither digits nor number words gave an amount."""
    code = ParseErrorCode.AMOUNT_NOT_FOUND
    stage = "amount"


class AmountOutOfRangeError(ExpenseParseError):
    """An amount was found but lies outside the accepted range."""
    code = ParseErrorCode.AMOUNT_OUT_OF_RANGE
    stage = "amount"


class UnsupportedCurrencyError(ExpenseParseError):
    """The currency is not in the catalog."""
    code = ParseErrorCode.UNSUPPORTED_CURRENCY
    stage = "currency"


class CategoryMissingError(ExpenseParseError):
    """No category could be assigned."""
    code = ParseErrorCode.CATEGORY_MISSING
    stage = "category"


ERRORS_BY_CODE = {
    error.code: error
    for error in (
        AmountNotFoundError,
        AmountOutOfRangeError,
        UnsupportedCurrencyError,
        CategoryMissingError,
    )
}


def error_for_issue(issue: ValidationIssue) -> ExpenseParseError:
    """Turn a blocking validation issue into the matching exception."""
    error_class = ERRORS_BY_CODE.get(issue.error_code, ExpenseParseError)
    return error_class(issue.message, detail={"field": issue.field, "issue_type": issue.issue_type})


# =============================================================================
# COMMAND PARSER
# =============================================================================

class CommandParser:
    """
    Parses a transcript into a ParsedExpense or a typed ParseError.

    Usage:
        parser = create_command_parser()
        result = parser.parse("I spent 25 dollars on food at Starbucks", "en_US")
        if result.succeeded:
            print(result.expense.amount, result.expense.currency)
    """

    def __init__(
        self,
        catalog: CurrencyCatalog,
        settings: Optional[ParserSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Initialize the parser.

        Args:
            catalog: Loaded (or degraded) currency catalog, owned by the caller
            settings: Parser limits; read from the environment if None
            audit_logger: Audit logger; local-only logging if None
        """
        self.catalog = catalog
        self.settings = settings or get_settings().parser
        self._audit_logger = audit_logger or AuditLogger()

        self.detector = CurrencyDetector(
            catalog,
            common_currencies=self.settings.common_currency_codes,
            default_currency=self.settings.default_currency,
        )
        self.numeric_extractor = NumericAmountExtractor(
            self.detector,
            min_amount=self.settings.min_amount,
            max_amount=self.settings.max_amount,
        )
        self.written_parser = WrittenNumberParser(self.detector.suffix_tokens())
        self.classifier = CategoryClassifier(self.settings.category_match_mode)
        self.merchant_extractor = MerchantExtractor(
            min_length=self.settings.merchant_min_length,
            max_length=self.settings.merchant_max_length,
        )
        self.scorer = ConfidenceScorer(self.detector, self.classifier, self.written_parser)
        self.validator = ExpenseValidator(catalog, self.settings)

    # -------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------

    def _extract_amount(
        self,
        normalized: str,
        correlation_id: UUID,
    ) -> tuple[Decimal, AmountSource, Optional[str], list[Decimal]]:
        """
        Amount stage: digits first, spoken numbers second.

        Returns:
            (amount, source, tagged currency, rejected numeric amounts)

        Raises:
            AmountOutOfRangeError: Only out-of-range digits and no number words
            AmountNotFoundError: Nothing looked like an amount
        """
        numeric = self.numeric_extractor.extract(normalized)
        if numeric.match is not None:
            self._audit_logger.log_amount_extracted(
                amount=str(numeric.match.value),
                pattern=numeric.match.pattern,
                currency_code=numeric.match.currency_code,
                correlation_id=correlation_id,
            )
            return (
                numeric.match.value,
                AmountSource.NUMERIC,
                numeric.match.currency_code,
                numeric.rejected_amounts,
            )

        written = self.written_parser.extract_amount_from_command(normalized)
        if written is not None:
            self._audit_logger.log_written_amount_used(str(written), correlation_id)
            return written, AmountSource.WRITTEN, None, numeric.rejected_amounts

        if numeric.rejected_amounts:
            rejected = numeric.rejected_amounts[0]
            raise AmountOutOfRangeError(
                f"Amount {rejected} is outside the accepted range "
                f"{self.settings.min_amount}-{self.settings.max_amount}",
                detail={"rejected_amounts": [str(value) for value in numeric.rejected_amounts]},
            )
        raise AmountNotFoundError("No amount was recognized in the transcript")

    def _fallback_currency(self, locale_hint: Optional[str]) -> str:
        code, _ = self.detector.currency_for_locale(locale_hint)
        return code

    def _detect_currency(
        self,
        transcript: str,
        locale_hint: Optional[str],
        tagged_currency: Optional[str],
        explicit_currency: Optional[str],
        correlation_id: UUID,
    ) -> tuple[str, CurrencySource]:
        """
        Currency stage.

        Raises:
            UnsupportedCurrencyError: Explicit currency the catalog does not know
        """
        if explicit_currency is not None:
            code = explicit_currency.strip().upper()
            supported = (
                code == self._fallback_currency(locale_hint)
                if self.catalog.is_degraded
                else code in self.catalog
            )
            if not supported:
                raise UnsupportedCurrencyError(
                    f"Unsupported currency: {explicit_currency}",
                    detail={"currency": explicit_currency},
                )

        code, source = self.detector.detect(
            transcript,
            locale_hint=locale_hint,
            tagged_currency=tagged_currency,
            explicit_currency=explicit_currency,
        )
        self._audit_logger.log_currency_detected(code, source.value, correlation_id)
        return code, source

    def build_candidate(
        self,
        transcript: str,
        locale_hint: Optional[str] = None,
        currency: Optional[str] = None,
        reference_time: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseCandidate:
        """
        Run every extractor and collect the results, unvalidated.

        Raises:
            ExpenseParseError: A stage could not produce its value
        """
        correlation_id = correlation_id or create_correlation_id()
        normalized = transcript.strip().lower()

        amount, amount_source, tagged, rejected = self._extract_amount(normalized, correlation_id)
        currency_code, currency_source = self._detect_currency(
            normalized, locale_hint, tagged, currency, correlation_id,
        )

        return ExpenseCandidate(
            transcript=transcript,
            amount=amount,
            amount_source=amount_source,
            rejected_amounts=rejected,
            currency=currency_code,
            currency_source=currency_source,
            category=self.classifier.classify(normalized).value,
            merchant=self.merchant_extractor.extract(transcript),
            notes=extract_notes(transcript),
            occurred_at=extract_occurred_at(normalized, reference_time),
            confidence=self.scorer.score(transcript),
        )

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------

    def parse(
        self,
        transcript: str,
        locale_hint: Optional[str] = None,
        *,
        currency: Optional[str] = None,
        reference_time: Optional[datetime] = None,
    ) -> ParseResult:
        """
        Parse one transcript.

        Args:
            transcript: What the user said or typed
            locale_hint: Caller locale such as 'en_AE', used for the
                currency fallback
            currency: Explicit currency; wins over the locale
            reference_time: "Now" for relative dates like "yesterday"

        Returns:
            ParseResult holding either the expense or a typed error
        """
        correlation_id = create_correlation_id()
        self._audit_logger.log_parse_received(transcript, locale_hint, correlation_id)

        degraded = self.catalog.is_degraded
        warnings = [DEGRADED_WARNING] if degraded else []
        confidence = self.scorer.score(transcript)

        try:
            candidate = self.build_candidate(
                transcript,
                locale_hint=locale_hint,
                currency=currency,
                reference_time=reference_time,
                correlation_id=correlation_id,
            )
            validation = self.validator.validate(
                candidate,
                fallback_currency=self._fallback_currency(locale_hint),
            )
            if not validation.is_valid:
                raise error_for_issue(validation.first_error)
        except ExpenseParseError as e:
            error = e.to_parse_error()
            self._audit_logger.log_parse_failed(
                error_code=error.code.value,
                stage=error.stage,
                message=error.message,
                transcript=transcript,
                correlation_id=correlation_id,
            )
            return ParseResult(
                correlation_id=correlation_id,
                transcript=transcript,
                error=error,
                confidence=confidence,
                degraded=degraded,
                warnings=warnings,
            )

        expense = ParsedExpense(
            amount=candidate.amount,
            currency=candidate.currency,
            category=ExpenseCategory(candidate.category),
            merchant=candidate.merchant,
            confidence=candidate.confidence,
            transcript=transcript,
            notes=candidate.notes,
            occurred_at=candidate.occurred_at,
            amount_source=candidate.amount_source,
            currency_source=candidate.currency_source,
        )
        for warning in validation.warnings:
            if warning not in warnings:
                warnings.append(warning)

        self._audit_logger.log_parse_succeeded(
            amount=f"{expense.amount:.2f}",
            currency_code=expense.currency,
            category=expense.category.value,
            confidence=expense.confidence,
            correlation_id=correlation_id,
        )
        return ParseResult(
            correlation_id=correlation_id,
            transcript=transcript,
            expense=expense,
            confidence=expense.confidence,
            degraded=degraded,
            warnings=warnings,
        )

    def parse_many(
        self,
        transcripts: Iterable[str],
        locale_hint: Optional[str] = None,
    ) -> list[ParseResult]:
        """Parse several transcripts with the same locale."""
        return [self.parse(transcript, locale_hint) for transcript in transcripts]

    def confidence(self, transcript: str) -> float:
        return self.scorer.score(transcript)

    def get_suggested_phrases(self, locale_hint: Optional[str] = None) -> list[str]:
        return get_suggested_phrases(locale_hint)


def get_suggested_phrases(locale_hint: Optional[str] = None) -> list[str]:
    """
    Example phrases for voice training, adapted to the user's region.

    UAE users hear dirhams and UK users pounds; everyone else dollars.
    """
    region = region_from_locale(locale_hint)
    if region not in REGIONAL_PHRASES:
        return list(BASE_PHRASES)
    currency_word, extras = REGIONAL_PHRASES[region]
    return [phrase.replace("dollars", currency_word) for phrase in BASE_PHRASES] + list(extras)


def create_command_parser(
    settings: Optional[ParserSettings] = None,
    audit_sink: Optional[AuditSinkInterface] = None,
) -> CommandParser:
    """
    Factory function to create a ready parser.

    Loads the catalog once from the configured path. A missing or broken
    catalog does not raise; the parser runs degraded.

    Args:
        settings: Parser settings; read from the environment if None
        audit_sink: Where audit events are persisted; local-only if None

    Returns:
        CommandParser
    """
    settings = settings or get_settings().parser
    audit_logger = AuditLogger(audit_sink)

    catalog = CurrencyCatalog(audit_logger=audit_logger)
    catalog.initialize(settings.catalog_file)

    return CommandParser(catalog, settings=settings, audit_logger=audit_logger)
