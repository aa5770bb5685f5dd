"""Result types returned by the pipeline driver."""

from dataclasses import dataclass, field
from typing import Any

from eduhooks.hooks.types import WriteIntent


@dataclass
class CascadeFailure:
    """An intent that failed for a reason other than a duplicate."""

    intent: WriteIntent
    error: str
    code: str = "CASCADE_FAILED"

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.intent.entity,
            "operation": self.intent.operation.value,
            "reason": self.intent.reason,
            "error": self.error,
            "code": self.code,
        }


@dataclass
class BatchOutcome:
    """What happened to one batch of write-intents.

    Attributes:
        applied: Records the store accepted, in intent order
        conflicts: Intents rejected by a uniqueness constraint (harmless)
        failures: Intents that failed for any other reason
    """

    applied: list[dict[str, Any]] = field(default_factory=list)
    conflicts: list[WriteIntent] = field(default_factory=list)
    failures: list[CascadeFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class WriteResult:
    """Outcome of add/set/remove.

    ``records`` holds the accepted (or removed) primary records in input
    order. Cascade results ride along; ``partial`` is True when the primary
    write committed but at least one cascade intent failed.
    """

    records: list[dict[str, Any]] = field(default_factory=list)
    cascaded: list[dict[str, Any]] = field(default_factory=list)
    conflicts: list[WriteIntent] = field(default_factory=list)
    cascade_failures: list[CascadeFailure] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def partial(self) -> bool:
        return bool(self.cascade_failures)

    @property
    def record(self) -> dict[str, Any] | None:
        """The first record, for single-record writes."""
        return self.records[0] if self.records else None

    def absorb(self, outcome: BatchOutcome) -> None:
        self.cascaded.extend(outcome.applied)
        self.conflicts.extend(outcome.conflicts)
        self.cascade_failures.extend(outcome.failures)
