"""Pipeline driver: runs lifecycle hooks around the store's CRUD surface.

Write flow for add/set/remove:

1. before* hooks transform each pending write (no I/O on the store)
2. the writes go to the store inside one unit of work
3. after* hooks run per accepted record and may return write-intents
4. intents are applied in the same unit of work, each behind a savepoint
5. commit
6. following* hooks run against the committed records (best-effort)

Reads run the ``get`` hooks per fetched record and drop excluded ones.
"""

import logging
from typing import Any

from eduhooks.config import Settings
from eduhooks.exceptions import HookAbortedError, UniqueConstraintError
from eduhooks.hooks.events import EventKind, EventSink, LifecycleEvent, LoggingEventSink
from eduhooks.hooks.registry import HookRegistry
from eduhooks.hooks.service import HookService
from eduhooks.hooks.types import (
    AFTER_PHASES,
    BEFORE_PHASES,
    FOLLOWING_PHASES,
    HookContext,
    HookResult,
    HookServices,
    Operation,
    Phase,
    WriteIntent,
)
from eduhooks.metadata.loader import MetadataLoader
from eduhooks.pipeline.selectors import Selector, select
from eduhooks.pipeline.types import BatchOutcome, CascadeFailure, WriteResult
from eduhooks.triggers import build_registry

logger = logging.getLogger(__name__)


class EntityPipeline:
    """Entity lifecycle pipeline over an EntityStore.

    Example:
        pipeline = EntityPipeline(store, metadata)
        result = await pipeline.add("Account", {"email": "ada@example.com"})
        profile = await pipeline.get("TeacherProfile", {"userId": result.record["id"]})
    """

    def __init__(
        self,
        store: Any,
        metadata: MetadataLoader,
        registry: HookRegistry | None = None,
        settings: Settings | None = None,
        events: EventSink | None = None,
    ):
        self.store = store
        self.metadata = metadata
        self.registry = registry if registry is not None else build_registry()
        self.settings = settings or Settings()
        self.events = events or LoggingEventSink()
        self.hook_service = HookService()
        self.services = HookServices(
            store=store, metadata=metadata, settings=self.settings, events=self.events
        )

    # ------------------------------------------------------------------
    # Hook plumbing
    # ------------------------------------------------------------------

    def _context(
        self,
        entity_name: str,
        phase: Phase,
        record: dict[str, Any],
        original: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> HookContext:
        return HookContext(
            entity_name=entity_name,
            phase=phase,
            record=record,
            original=original,
            payload=payload,
            services=self.services,
        )

    async def _run(self, ctx: HookContext) -> HookResult | None:
        entries = self.registry.resolve(ctx.entity_name, ctx.phase)
        result = await self.hook_service.run_hooks(entries, ctx)
        if result and result.abort:
            raise HookAbortedError(ctx.entity_name, ctx.phase.value, result.abort)
        return result

    async def _prepare(
        self,
        entity_name: str,
        operation: Operation,
        record: dict[str, Any],
        original: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run before* hooks and return the transformed pending write."""
        ctx = self._context(entity_name, BEFORE_PHASES[operation], dict(record), original)
        await self._run(ctx)
        return ctx.record

    async def _after(
        self,
        entity_name: str,
        operation: Operation,
        record: dict[str, Any],
        original: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> list[WriteIntent]:
        ctx = self._context(entity_name, AFTER_PHASES[operation], dict(record), original, payload)
        result = await self._run(ctx)
        return list(result.intents) if result else []

    async def _following(
        self,
        entity_name: str,
        operation: Operation,
        record: dict[str, Any],
        original: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        ctx = self._context(
            entity_name, FOLLOWING_PHASES[operation], dict(record), original, payload
        )
        # Failures are logged and reported by the hook service, never raised
        await self.hook_service.run_hooks(
            self.registry.resolve(entity_name, ctx.phase), ctx
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def add(
        self, entity_name: str, records: dict[str, Any] | list[dict[str, Any]]
    ) -> WriteResult:
        """Add one record or a batch; results keep input order."""
        entity = self.metadata.require_entity(entity_name)
        items = [records] if isinstance(records, dict) else list(records)

        pending = [await self._prepare(entity_name, Operation.ADD, item) for item in items]

        result = WriteResult()
        if not pending:
            return result

        self.store.begin()
        try:
            intents: list[WriteIntent] = []
            for record in pending:
                created = self.store.create_no_commit(entity, record)
                intents.extend(
                    await self._after(entity_name, Operation.ADD, created, payload=record)
                )
                result.records.append(created)
            outcome = await self._apply_intents(intents)
        except Exception:
            self.store.rollback()
            raise
        self.store.commit()
        result.absorb(outcome)

        for created in result.records:
            await self._following(entity_name, Operation.ADD, created)
        return result

    async def set(
        self, entity_name: str, selector: Selector, payload: dict[str, Any]
    ) -> WriteResult:
        """Apply a partial update to every record the selector matches."""
        entity = self.metadata.require_entity(entity_name)
        if selector is None:
            raise ValueError("set requires a selector")

        targets = select(self.store, entity, selector)
        if not targets:
            return WriteResult()

        pk = entity.primary_key
        changes = [
            (original, await self._prepare(entity_name, Operation.SET, payload, original))
            for original in targets
        ]

        result = WriteResult()
        self.store.begin()
        try:
            intents: list[WriteIntent] = []
            for original, change in changes:
                updated = self.store.update_no_commit(entity, original[pk], change)
                intents.extend(
                    await self._after(entity_name, Operation.SET, updated, original, change)
                )
                result.records.append(updated)
            outcome = await self._apply_intents(intents)
        except Exception:
            self.store.rollback()
            raise
        self.store.commit()
        result.absorb(outcome)

        for (original, change), updated in zip(changes, result.records):
            await self._following(entity_name, Operation.SET, updated, original, change)
        return result

    async def remove(self, entity_name: str, selector: Selector) -> WriteResult:
        """Remove every record the selector matches; returns the removed records."""
        entity = self.metadata.require_entity(entity_name)
        if selector is None:
            raise ValueError("remove requires a selector")

        targets = select(self.store, entity, selector)
        if not targets:
            return WriteResult()

        for original in targets:
            await self._prepare(entity_name, Operation.REMOVE, original, original)

        pk = entity.primary_key
        result = WriteResult()
        self.store.begin()
        try:
            intents: list[WriteIntent] = []
            for original in targets:
                if self.store.delete_no_commit(entity, original[pk]):
                    result.records.append(original)
                    intents.extend(
                        await self._after(entity_name, Operation.REMOVE, original, original)
                    )
            outcome = await self._apply_intents(intents)
        except Exception:
            self.store.rollback()
            raise
        self.store.commit()
        result.absorb(outcome)

        for original in result.records:
            await self._following(entity_name, Operation.REMOVE, original, original)
        return result

    async def get(
        self, entity_name: str, selector: Selector = None
    ) -> dict[str, Any] | list[dict[str, Any]] | None:
        """Fetch by primary key (dict or None) or by equality selector (list)."""
        entity = self.metadata.require_entity(entity_name)
        survivors = await self._guard(entity_name, select(self.store, entity, selector))
        if isinstance(selector, str):
            return survivors[0] if survivors else None
        return survivors

    async def _guard(
        self, entity_name: str, records: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        if not self.registry.resolve(entity_name, Phase.GET):
            return records
        survivors = []
        for record in records:
            ctx = self._context(entity_name, Phase.GET, dict(record))
            result = await self._run(ctx)
            if result and result.exclude:
                continue
            survivors.append(ctx.record)
        return survivors

    async def submit(self, intents: list[WriteIntent]) -> BatchOutcome:
        """Apply a batch of write-intents in its own unit of work.

        The entry point for replaying a cascade, e.g. after an upstream
        retry. Duplicates come back as conflicts, not errors.
        """
        if not intents:
            return BatchOutcome()
        self.store.begin()
        try:
            outcome = await self._apply_intents(intents)
        except Exception:
            self.store.rollback()
            raise
        self.store.commit()
        return outcome

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    async def _apply_intents(self, intents: list[WriteIntent]) -> BatchOutcome:
        """Apply intents inside the open unit of work, one savepoint each."""
        outcome = BatchOutcome()
        for n, intent in enumerate(intents):
            savepoint = f"cascade_{n}"
            self.store.savepoint(savepoint)
            try:
                record = await self._apply_intent(intent)
            except UniqueConstraintError as e:
                self.store.rollback_to_savepoint(savepoint)
                outcome.conflicts.append(intent)
                logger.info("Duplicate %s ignored: %s", intent.entity, e.message)
                self._emit_intent_event(
                    intent, EventKind.CASCADE_CONFLICT, "CASCADE_DUPLICATE", e.message
                )
            except Exception as e:
                self.store.rollback_to_savepoint(savepoint)
                outcome.failures.append(CascadeFailure(intent=intent, error=str(e)))
                logger.error("Cascade %s on %s failed: %s", intent.reason, intent.entity, e)
                self._emit_intent_event(
                    intent, EventKind.CASCADE_FAILURE, "CASCADE_FAILED", str(e)
                )
            else:
                if record is not None:
                    outcome.applied.append(record)
            finally:
                self.store.release_savepoint(savepoint)
        return outcome

    async def _apply_intent(self, intent: WriteIntent) -> dict[str, Any] | None:
        """Intents get the target's before* hooks but never cascade further."""
        entity = self.metadata.require_entity(intent.entity)

        if intent.operation == Operation.ADD:
            record = await self._prepare(intent.entity, Operation.ADD, intent.data)
            return self.store.create_no_commit(entity, record)

        key = intent.data.get(entity.primary_key)
        if key is None:
            raise ValueError(
                f"{intent.operation.value} intent for {intent.entity} needs '{entity.primary_key}'"
            )
        original = self.store.get(entity, key)
        if original is None:
            return None

        if intent.operation == Operation.SET:
            data = {k: v for k, v in intent.data.items() if k != entity.primary_key}
            change = await self._prepare(intent.entity, Operation.SET, data, original)
            return self.store.update_no_commit(entity, key, change)

        if intent.operation == Operation.REMOVE:
            await self._prepare(intent.entity, Operation.REMOVE, original, original)
            self.store.delete_no_commit(entity, key)
            return original

        raise ValueError(f"Unsupported intent operation: {intent.operation.value}")

    def _emit_intent_event(
        self, intent: WriteIntent, kind: EventKind, code: str, message: str
    ) -> None:
        self.events.emit(
            LifecycleEvent(
                kind=kind,
                entity=intent.entity,
                code=code,
                message=message,
                record_id=intent.data.get("userId") or intent.data.get("id"),
                details={"reason": intent.reason, "operation": intent.operation.value},
            )
        )