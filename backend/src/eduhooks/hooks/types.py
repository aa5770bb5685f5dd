"""Hook system types for eduhooks.

Defines the core data structures for the entity lifecycle hook system:
- Phase: the lifecycle points hooks can be registered for
- HookContext: runtime state passed to hook functions
- HookResult: return value from hook functions
- WriteIntent: a typed write the cascade phase asks the pipeline to run
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from eduhooks.config import Settings
from eduhooks.hooks.events import EventSink


class Operation(Enum):
    """The store operation a request maps to."""

    ADD = "add"
    SET = "set"
    REMOVE = "remove"
    GET = "get"


class Phase(Enum):
    """Lifecycle points, in the order a write passes through them.

    before*: transform the pending write (normalize, sanitize)
    after*: accepted by the store, same unit of work (cascades)
    following*: after commit, best-effort (notifiers)
    get: per fetched record (integrity guard)
    """

    BEFORE_ADD = "beforeAdd"
    BEFORE_SET = "beforeSet"
    BEFORE_REMOVE = "beforeRemove"
    AFTER_ADD = "afterAdd"
    AFTER_SET = "afterSet"
    AFTER_REMOVE = "afterRemove"
    FOLLOWING_ADD = "followingAdd"
    FOLLOWING_SET = "followingSet"
    FOLLOWING_REMOVE = "followingRemove"
    GET = "get"

    @property
    def is_post_commit(self) -> bool:
        return self in POST_COMMIT_PHASES


POST_COMMIT_PHASES = frozenset(
    {Phase.FOLLOWING_ADD, Phase.FOLLOWING_SET, Phase.FOLLOWING_REMOVE}
)

BEFORE_PHASES = {
    Operation.ADD: Phase.BEFORE_ADD,
    Operation.SET: Phase.BEFORE_SET,
    Operation.REMOVE: Phase.BEFORE_REMOVE,
}

AFTER_PHASES = {
    Operation.ADD: Phase.AFTER_ADD,
    Operation.SET: Phase.AFTER_SET,
    Operation.REMOVE: Phase.AFTER_REMOVE,
}

FOLLOWING_PHASES = {
    Operation.ADD: Phase.FOLLOWING_ADD,
    Operation.SET: Phase.FOLLOWING_SET,
    Operation.REMOVE: Phase.FOLLOWING_REMOVE,
}


@dataclass
class WriteIntent:
    """A write produced by a cascade hook.

    The pipeline submits every intent from one primary write as a single
    batch inside the primary write's unit of work.

    Attributes:
        entity: Target entity name
        data: Record to add
        operation: Only ADD is scheduled by the built-in cascades
        reason: Short description used in events and logs
    """

    entity: str
    data: dict[str, Any]
    operation: Operation = Operation.ADD
    reason: str = ""


@dataclass
class HookServices:
    """Collaborators available to hooks that need I/O.

    Attributes:
        store: The EntityStore the pipeline wraps
        metadata: MetadataLoader with resolved entity models
        settings: Pipeline settings
        events: Sink for lifecycle events
    """

    store: Any
    metadata: Any
    settings: Settings
    events: EventSink


@dataclass
class HookContext:
    """Runtime context passed to every hook function.

    Attributes:
        entity_name: Name of the entity being operated on
        phase: The lifecycle phase being run
        record: Pending write (before*), accepted record (after*),
            committed record (following*), or fetched record (get)
        original: Stored record before a set/remove, None for add
        payload: The set payload as submitted (after sanitization for
            after*/following* phases)
        services: Collaborators for hooks that need I/O
    """

    entity_name: str
    phase: Phase
    record: dict[str, Any]
    original: dict[str, Any] | None = None
    payload: dict[str, Any] | None = None
    services: HookServices | None = None

    @property
    def settings(self) -> Settings:
        if self.services is None:
            return Settings()
        return self.services.settings

    @property
    def record_id(self) -> Any:
        for source in (self.record, self.original):
            if source and source.get("id") is not None:
                return source["id"]
        return None

    def emit(self, event: Any) -> None:
        """Forward an event to the configured sink, if any."""
        if self.services is not None:
            self.services.events.emit(event)


@dataclass
class HookResult:
    """Return value from hook functions.

    Attributes:
        update: Fields to merge into the record
        drop: Field names to remove from the record
        intents: Writes to schedule alongside the current one
        exclude: Read phase only; omit the record from the result set
        abort: Error message to stop the write before it is persisted
    """

    update: dict[str, Any] | None = None
    drop: list[str] | None = None
    intents: list[WriteIntent] = field(default_factory=list)
    exclude: bool = False
    abort: str | None = None


def compute_changes(
    record: dict[str, Any], original: dict[str, Any] | None
) -> dict[str, Any] | None:
    """Compute a diff of changed fields between record and original.

    Returns None if original is None.
    Returns a dict of {field: new_value} for fields that differ.
    """
    if original is None:
        return None

    changes: dict[str, Any] = {}
    for key, value in record.items():
        if key in original and original[key] != value:
            changes[key] = value
        elif key not in original:
            changes[key] = value

    return changes
