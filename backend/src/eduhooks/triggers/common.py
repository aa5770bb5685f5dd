"""Hook bodies shared by every entity with lifecycle rules.

Each hook wraps a pure helper (normalize, sanitize) and turns what the
helper changed into a HookResult plus one lifecycle event per correction.
"""

import logging
from typing import Any

from eduhooks.hooks.events import EventKind, LifecycleEvent
from eduhooks.hooks.types import HookContext, HookResult, compute_changes
from eduhooks.triggers.normalize import normalize
from eduhooks.triggers.sanitize import Sanitizer, credential_fields

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = frozenset({"createdAt", "updatedAt"})


def emit(
    ctx: HookContext,
    kind: EventKind,
    code: str,
    message: str,
    **details: Any,
) -> None:
    ctx.emit(
        LifecycleEvent(
            kind=kind,
            entity=ctx.entity_name,
            code=code,
            message=message,
            record_id=ctx.record_id,
            details=details,
        )
    )


def _report_derived(ctx: HookContext, changes: dict[str, Any]) -> None:
    for name, value in changes.items():
        if name in TIMESTAMP_FIELDS:
            continue
        emit(
            ctx,
            EventKind.SILENT_CORRECTION,
            "FIELD_DERIVED",
            f"{name} set to {value!r}",
            field=name,
        )


def _drop(ctx: HookContext, names: list[str], code: str, reason: str) -> HookResult | None:
    if not names:
        return None
    for name in names:
        emit(
            ctx,
            EventKind.SILENT_CORRECTION,
            code,
            f"Dropped '{name}' from {ctx.phase.value} payload: {reason}",
            field=name,
        )
    logger.debug("Dropped %s from %s %s payload", names, ctx.entity_name, ctx.phase.value)
    return HookResult(drop=names)


async def normalize_on_add(ctx: HookContext) -> HookResult | None:
    """Fill defaults and derived fields on a pending add."""
    normalized = normalize(ctx.entity_name, ctx.record, ctx.settings)
    changes = compute_changes(normalized, ctx.record)
    if not changes:
        return None
    _report_derived(ctx, changes)
    return HookResult(update=changes)


async def normalize_on_set(ctx: HookContext) -> HookResult | None:
    """Re-stamp updatedAt and apply the entity's update rules."""
    normalized = normalize(ctx.entity_name, ctx.record, ctx.settings, update=True)
    changes = compute_changes(normalized, ctx.record)
    if not changes:
        return None
    _report_derived(ctx, changes)
    return HookResult(update=changes)


async def strip_credentials(ctx: HookContext) -> HookResult | None:
    """Credentials belong to the session provider, never to the record."""
    return _drop(
        ctx,
        credential_fields(ctx.entity_name, ctx.record),
        "CREDENTIAL_DROPPED",
        "credentials are not stored on this entity",
    )


async def sanitize_on_set(ctx: HookContext) -> HookResult | None:
    """Remove keys outside the entity's allowlist from a set payload."""
    if ctx.services is None:
        return None
    sanitizer = Sanitizer(ctx.services.metadata)
    return _drop(
        ctx,
        sanitizer.rejected_fields(ctx.entity_name, ctx.record),
        "FIELD_DROPPED",
        "not a declared field",
    )


async def log_removal(ctx: HookContext) -> None:
    logger.info("Removing %s %s", ctx.entity_name, ctx.record_id)
