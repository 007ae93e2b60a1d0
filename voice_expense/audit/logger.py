"""
Audit Logger

DESIGN DECISION: Every parse is logged step by step.
This provides:
1. Complete traceability from transcript to record
2. Debugging capability for misheard amounts
3. Material for tuning keyword tables

The audit logger:
- Is synchronous, like the parser it serves
- Gracefully handles sink failures (never breaks a parse)
- Supports correlation IDs to trace the events of one parse
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from voice_expense.audit.sink import AuditSinkError, AuditSinkInterface
from voice_expense.config import LoggingSettings, get_settings
from voice_expense.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_structlog(json_output: bool = True) -> None:
    """Configure structlog processors only; stdlib handlers are left alone."""
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Set up stdout logging for an application that embeds the parser.

    Unlike the import-time setup this touches the root logger, so only
    the host application should call it. Safe to call more than once;
    the last call wins.
    """
    settings = settings or get_settings().logging

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.level),
    )
    logging.getLogger().setLevel(getattr(logging, settings.level))

    configure_structlog(settings.json_output)


# Configure structlog for local logging
configure_structlog()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional sink (for persistence)
    """

    def __init__(
        self,
        sink: Optional[AuditSinkInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            sink: Backend for persistence.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger("voice_expense.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to the sink if available.

        Returns True if the sink write succeeded (or no sink configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink:
            try:
                return self._sink.append_event(event)
            except AuditSinkError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_catalog_loaded(self, version: str, currency_count: int, source: str) -> None:
        self.log(AuditEventBuilder.catalog_loaded(version, currency_count, source))

    def log_catalog_load_failed(self, source: str, error_message: str) -> None:
        self.log(AuditEventBuilder.catalog_load_failed(source, error_message))

    def log_catalog_reinitialization_ignored(self, currency_count: int) -> None:
        self.log(AuditEventBuilder.catalog_reinitialization_ignored(currency_count))

    def log_parse_received(
        self,
        transcript: str,
        locale_hint: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log the start of a parse."""
        self.log(AuditEventBuilder.parse_received(
            transcript=transcript,
            locale_hint=locale_hint,
            correlation_id=correlation_id,
        ))

    def log_amount_extracted(
        self,
        amount: str,
        pattern: str,
        currency_code: Optional[str],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.amount_extracted(
            amount=amount,
            pattern=pattern,
            currency_code=currency_code,
            correlation_id=correlation_id,
        ))

    def log_written_amount_used(self, amount: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.written_amount_used(amount, correlation_id))

    def log_currency_detected(
        self,
        currency_code: str,
        source: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.currency_detected(currency_code, source, correlation_id))

    def log_parse_succeeded(
        self,
        amount: str,
        currency_code: str,
        category: str,
        confidence: float,
        correlation_id: UUID,
    ) -> None:
        """Log a successful parse."""
        self.log(AuditEventBuilder.parse_succeeded(
            amount=amount,
            currency_code=currency_code,
            category=category,
            confidence=confidence,
            correlation_id=correlation_id,
        ))

    def log_parse_failed(
        self,
        error_code: str,
        stage: str,
        message: str,
        transcript: str,
        correlation_id: UUID,
    ) -> None:
        """Log a typed parse failure."""
        self.log(AuditEventBuilder.parse_failed(
            error_code=error_code,
            stage=stage,
            message=message,
            transcript=transcript,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One per parse call; every event of that parse carries it.
    """
    return uuid4()
