"""Structured lifecycle events.

Every silent correction, soft failure, fail-safe deletion and cascade or
notifier problem is reported as one LifecycleEvent, so callers can assert on
pipeline behavior without scraping log text.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger("eduhooks.events")


class EventKind(Enum):
    SILENT_CORRECTION = "silent_correction"
    SOFT_FAIL = "soft_fail"
    FAIL_SAFE_DELETION = "fail_safe_deletion"
    CASCADE_CONFLICT = "cascade_conflict"
    CASCADE_FAILURE = "cascade_failure"
    NOTIFIER_FAILURE = "notifier_failure"


_LOG_LEVELS = {
    EventKind.SILENT_CORRECTION: logging.DEBUG,
    EventKind.SOFT_FAIL: logging.WARNING,
    EventKind.FAIL_SAFE_DELETION: logging.WARNING,
    EventKind.CASCADE_CONFLICT: logging.INFO,
    EventKind.CASCADE_FAILURE: logging.ERROR,
    EventKind.NOTIFIER_FAILURE: logging.ERROR,
}


@dataclass(frozen=True)
class LifecycleEvent:
    """A single observable pipeline decision.

    Attributes:
        kind: Category of the event
        entity: Entity the event concerns
        code: Machine-readable code (e.g., "FIELD_DROPPED")
        message: Human-readable description
        record_id: Identifier of the affected record, when known
        details: Extra structured data (field names, error text)
    """

    kind: EventKind
    entity: str
    code: str
    message: str
    record_id: Any = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "entity": self.entity,
            "code": self.code,
            "message": self.message,
            "recordId": self.record_id,
            "details": dict(self.details),
        }


@runtime_checkable
class EventSink(Protocol):
    """Anything that accepts lifecycle events."""

    def emit(self, event: LifecycleEvent) -> None: ...


class LoggingEventSink:
    """Writes events to the ``eduhooks.events`` logger."""

    def emit(self, event: LifecycleEvent) -> None:
        logger.log(
            _LOG_LEVELS.get(event.kind, logging.INFO),
            "[%s] %s %s: %s",
            event.kind.value,
            event.entity,
            event.code,
            event.message,
        )


class RecordingEventSink:
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[LifecycleEvent] = []

    def emit(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: EventKind) -> list[LifecycleEvent]:
        return [e for e in self.events if e.kind == kind]

    def codes(self) -> list[str]:
        return [e.code for e in self.events]

    def clear(self) -> None:
        self.events.clear()


class FanOutEventSink:
    """Broadcasts each event to several sinks."""

    def __init__(self, *sinks: EventSink) -> None:
        self.sinks = list(sinks)

    def emit(self, event: LifecycleEvent) -> None:
        for sink in self.sinks:
            sink.emit(event)
