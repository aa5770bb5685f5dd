"""eduhooks entity lifecycle hook system.

Provides extension points for logic that runs at specific points in the
entity add/set/remove/get lifecycle:
- before*: transform the pending write (can modify record, can abort)
- after*: after the store accepted the write, same unit of work (cascades)
- following*: after commit (fire-and-forget side effects)
- get: per fetched record (can exclude it)

Usage:
    from eduhooks.hooks import HookContext, HookRegistry, HookResult, Phase

    registry = HookRegistry()

    @registry.hook("GradeLevel", Phase.BEFORE_ADD)
    async def derive_code(ctx: HookContext) -> HookResult:
        return HookResult(update={"code": ctx.record["name"][:3].upper()})
"""

from eduhooks.hooks.events import (
    EventKind,
    EventSink,
    FanOutEventSink,
    LifecycleEvent,
    LoggingEventSink,
    RecordingEventSink,
)
from eduhooks.hooks.registry import HookEntry, HookFn, HookRegistry
from eduhooks.hooks.service import HookService
from eduhooks.hooks.types import (
    HookContext,
    HookResult,
    HookServices,
    Operation,
    Phase,
    WriteIntent,
    compute_changes,
)

VALID_PHASES = tuple(p.value for p in Phase)

__all__ = [
    "EventKind",
    "EventSink",
    "FanOutEventSink",
    "HookContext",
    "HookEntry",
    "HookFn",
    "HookRegistry",
    "HookResult",
    "HookService",
    "HookServices",
    "LifecycleEvent",
    "LoggingEventSink",
    "Operation",
    "Phase",
    "RecordingEventSink",
    "VALID_PHASES",
    "WriteIntent",
    "compute_changes",
]
