"""
Abstract Audit Sink Interface

DESIGN DECISION: Where audit events end up is not the parser's concern.
We define an abstract interface so that:
1. Tests can use in-memory sinks
2. Apps can forward events to their own storage
3. Business logic stays decoupled from any storage implementation
"""

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from uuid import UUID

from voice_expense.models.audit import AuditEvent, AuditEventType


class AuditSinkError(Exception):
    """Base exception for audit sink failures."""
    pass


class AuditSinkInterface(ABC):
    """
    Abstract interface for audit event persistence.

    Implementations must be append-only.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an event.

        Returns:
            True if the event was stored

        Raises:
            AuditSinkError: If the write fails
        """
        pass


class InMemoryAuditSink(AuditSinkInterface):
    """Keeps events in a list. Used in tests and for short-lived sessions."""

    def __init__(self):
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def append_event(self, event: AuditEvent) -> bool:
        with self._lock:
            self._events.append(event)
        return True

    @property
    def events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)

    def events_of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def for_correlation(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self.events if e.correlation_id == correlation_id]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class JsonLinesAuditSink(AuditSinkInterface):
    """Appends one JSON object per line to a file."""

    def __init__(self, path: Path, encoding: Optional[str] = "utf-8"):
        self._path = Path(path)
        self._encoding = encoding
        self._lock = threading.Lock()

    def append_event(self, event: AuditEvent) -> bool:
        try:
            with self._lock:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding=self._encoding) as handle:
                    handle.write(event.to_json_line() + "\n")
        except OSError as e:
            raise AuditSinkError(f"Failed to write audit event to {self._path}: {e}") from e
        return True
