"""Audit logging package."""

from voice_expense.audit.logger import (
    AuditLogger,
    configure_logging,
    configure_structlog,
    create_correlation_id,
)
from voice_expense.audit.sink import (
    AuditSinkError,
    AuditSinkInterface,
    InMemoryAuditSink,
    JsonLinesAuditSink,
)

__all__ = [
    "AuditLogger",
    "AuditSinkError",
    "AuditSinkInterface",
    "InMemoryAuditSink",
    "JsonLinesAuditSink",
    "configure_logging",
    "configure_structlog",
    "create_correlation_id",
]
