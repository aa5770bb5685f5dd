"""Hook execution service for eduhooks.

Orchestrates the execution of hooks at each lifecycle phase, handling
sequential ordering, result merging, and error handling for post-commit
hooks.
"""

import logging
from typing import Any

from eduhooks.hooks.events import EventKind, LifecycleEvent
from eduhooks.hooks.registry import HookEntry
from eduhooks.hooks.types import HookContext, HookResult, WriteIntent

logger = logging.getLogger(__name__)


class HookService:
    """Orchestrates hook execution for entity lifecycle events.

    Hooks within a phase execute sequentially in registration order.
    Each hook's update/drop output is applied to the context record before
    the next hook runs.
    """

    async def run_hooks(
        self,
        entries: list[HookEntry],
        context: HookContext,
    ) -> HookResult | None:
        """Execute hooks for the context's phase.

        Args:
            entries: Registered hooks for (entity, phase), in order
            context: The hook context with current record state

        Returns:
            Merged HookResult (updates, drops, intents, exclude), or None if
            no hook produced anything. If a hook aborts, returns immediately
            with the abort message.
        """
        if not entries:
            return None

        post_commit = context.phase.is_post_commit
        merged_updates: dict[str, Any] = {}
        dropped: list[str] = []
        intents: list[WriteIntent] = []

        for entry in entries:
            try:
                result = await entry.fn(context)
            except Exception as e:
                if post_commit:
                    # following* hooks are fire-and-forget
                    logger.error(
                        "%s hook '%s' on %s failed: %s",
                        context.phase.value,
                        entry.name,
                        context.entity_name,
                        e,
                    )
                    context.emit(
                        LifecycleEvent(
                            kind=EventKind.NOTIFIER_FAILURE,
                            entity=context.entity_name,
                            code="NOTIFIER_FAILED",
                            message=f"Hook '{entry.name}' failed: {e}",
                            record_id=context.record_id,
                            details={"hook": entry.name, "phase": context.phase.value},
                        )
                    )
                    continue
                return HookResult(abort=f"Hook '{entry.name}' failed: {e}")

            if result is None:
                continue

            if result.abort:
                return result

            # Compounding: later hooks see earlier updates
            if result.update:
                context.record.update(result.update)
                merged_updates.update(result.update)
            for name in result.drop or []:
                context.record.pop(name, None)
                merged_updates.pop(name, None)
                if name not in dropped:
                    dropped.append(name)

            intents.extend(result.intents)

            if result.exclude:
                return HookResult(
                    update=merged_updates or None,
                    drop=dropped or None,
                    intents=intents,
                    exclude=True,
                )

        if merged_updates or dropped or intents:
            return HookResult(
                update=merged_updates or None,
                drop=dropped or None,
                intents=intents,
            )

        return None
