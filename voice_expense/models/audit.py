"""
Audit Models for Voice Expense

Every parse and every catalog load is recorded as an audit event.
This provides:
1. Traceability from a stored expense back to the words that produced it
2. Debugging information when a transcript is misread
3. Training material for improving keyword tables

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step of the parse pipeline has its own event type.
    """
    # Catalog lifecycle
    CATALOG_LOADED = "catalog_loaded"
    CATALOG_LOAD_FAILED = "catalog_load_failed"
    CATALOG_REINITIALIZATION_IGNORED = "catalog_reinitialization_ignored"

    # Parse pipeline
    PARSE_RECEIVED = "parse_received"
    AMOUNT_EXTRACTED = "amount_extracted"
    WRITTEN_AMOUNT_USED = "written_amount_used"
    CURRENCY_DETECTED = "currency_detected"
    PARSE_SUCCEEDED = "parse_succeeded"
    PARSE_FAILED = "parse_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transcript', 'catalog')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - all events of one parse share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one parse call"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_json_line(self) -> str:
        """Serialize as one JSON line for append-only files."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False, default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.parse_received(transcript, locale_hint, correlation_id)
        event = AuditEventBuilder.parse_failed(code, stage, message, correlation_id)
    """

    @staticmethod
    def catalog_loaded(
        version: str,
        currency_count: int,
        source: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATALOG_LOADED,
            entity_type="catalog",
            description=f"Currency catalog {version} loaded with {currency_count} currencies",
            details={
                "version": version,
                "currency_count": currency_count,
                "source": source,
            },
        )

    @staticmethod
    def catalog_load_failed(
        source: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATALOG_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="catalog",
            description="Currency catalog could not be loaded; running degraded",
            details={"source": source},
            error_code="CatalogLoadDegraded",
            error_message=error_message,
        )

    @staticmethod
    def catalog_reinitialization_ignored(currency_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATALOG_REINITIALIZATION_IGNORED,
            severity=AuditSeverity.WARNING,
            entity_type="catalog",
            description=f"Catalog already initialized with {currency_count} currencies",
            details={"currency_count": currency_count},
        )

    @staticmethod
    def parse_received(
        transcript: str,
        locale_hint: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARSE_RECEIVED,
            severity=AuditSeverity.DEBUG,
            entity_type="transcript",
            correlation_id=correlation_id,
            description="Transcript received for parsing",
            details={
                "transcript": transcript,
                "locale_hint": locale_hint,
            },
        )

    @staticmethod
    def amount_extracted(
        amount: str,
        pattern: str,
        currency_code: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AMOUNT_EXTRACTED,
            severity=AuditSeverity.DEBUG,
            entity_type="transcript",
            correlation_id=correlation_id,
            description=f"Numeric amount {amount} matched by {pattern}",
            details={
                "amount": amount,
                "pattern": pattern,
                "currency_code": currency_code,
            },
        )

    @staticmethod
    def written_amount_used(
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WRITTEN_AMOUNT_USED,
            severity=AuditSeverity.DEBUG,
            entity_type="transcript",
            correlation_id=correlation_id,
            description=f"Spoken number phrase resolved to {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def currency_detected(
        currency_code: str,
        source: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CURRENCY_DETECTED,
            severity=AuditSeverity.DEBUG,
            entity_type="transcript",
            correlation_id=correlation_id,
            description=f"Currency {currency_code} decided from {source}",
            details={
                "currency_code": currency_code,
                "source": source,
            },
        )

    @staticmethod
    def parse_succeeded(
        amount: str,
        currency_code: str,
        category: str,
        confidence: float,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARSE_SUCCEEDED,
            entity_type="transcript",
            correlation_id=correlation_id,
            description=f"Parsed {amount} {currency_code} ({category}) with {confidence:.0%} confidence",
            details={
                "amount": amount,
                "currency": currency_code,
                "category": category,
                "confidence": confidence,
            },
        )

    @staticmethod
    def parse_failed(
        error_code: str,
        stage: str,
        message: str,
        transcript: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARSE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transcript",
            correlation_id=correlation_id,
            description=f"Parse failed at {stage} stage: {error_code}",
            details={
                "stage": stage,
                "transcript": transcript,
            },
            error_code=error_code,
            error_message=message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
