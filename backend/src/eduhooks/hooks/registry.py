"""Hook registry for eduhooks.

An explicit registration table mapping (entity, phase) to the ordered list
of hook functions to invoke. The table is built once at startup and only
read afterwards.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from eduhooks.hooks.types import HookContext, HookResult, Phase

# Hook function signature: async (HookContext) -> HookResult | None
HookFn = Callable[[HookContext], Awaitable[HookResult | None]]


@dataclass(frozen=True)
class HookEntry:
    """One row of the registration table."""

    entity: str
    phase: Phase
    name: str
    fn: HookFn
    description: str = ""


class HookRegistry:
    """Registry for hook implementations.

    Example:
        registry = HookRegistry()

        @registry.hook("GradeLevel", Phase.BEFORE_ADD)
        async def derive_code(ctx: HookContext) -> HookResult:
            ...
    """

    def __init__(self) -> None:
        self._table: dict[tuple[str, Phase], list[HookEntry]] = {}

    def register(
        self,
        entity: str,
        phase: Phase,
        name: str,
        hook_fn: HookFn,
        description: str = "",
    ) -> None:
        """Append a hook to the list for (entity, phase).

        Idempotent: re-registering the same name for the same
        (entity, phase) is a no-op.

        Args:
            entity: Entity name the hook applies to
            phase: Lifecycle phase
            name: Identifier for the hook, unique per (entity, phase)
            hook_fn: Async function implementing the hook
            description: Human-readable description
        """
        entries = self._table.setdefault((entity, phase), [])
        if any(e.name == name for e in entries):
            return
        entries.append(HookEntry(entity, phase, name, hook_fn, description))

    def resolve(self, entity: str, phase: Phase) -> list[HookEntry]:
        """Get the ordered hooks for (entity, phase); empty if none."""
        return list(self._table.get((entity, phase), []))

    def is_registered(self, entity: str, phase: Phase, name: str) -> bool:
        """Check if a named hook is registered for (entity, phase)."""
        return any(e.name == name for e in self._table.get((entity, phase), []))

    def entries(self, entity: str | None = None) -> list[HookEntry]:
        """Enumerate the table, grouped by entity then phase order."""
        phase_order = list(Phase)
        rows = [
            entry
            for (entity_name, _), entries in self._table.items()
            if entity is None or entity_name == entity
            for entry in entries
        ]
        # sorted() is stable, so registration order survives within a key
        return sorted(rows, key=lambda e: (e.entity, phase_order.index(e.phase)))

    def entities(self) -> list[str]:
        """Entity names with at least one registered hook."""
        return sorted({entity for entity, _ in self._table})

    def clear(self) -> None:
        """Clear all registrations. Primarily for testing."""
        self._table.clear()

    def hook(
        self, entity: str, phase: Phase, name: str | None = None, description: str = ""
    ) -> Callable[[HookFn], HookFn]:
        """Decorator to register a hook function.

        The function's ``__name__`` is used when no name is given.
        """

        def decorator(fn: HookFn) -> HookFn:
            self.register(entity, phase, name or fn.__name__, fn, description)
            return fn

        return decorator
