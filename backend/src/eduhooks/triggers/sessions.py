"""Session lifecycle hooks, including the read-time integrity guard."""

import logging

from eduhooks.hooks.events import EventKind
from eduhooks.hooks.registry import HookRegistry
from eduhooks.hooks.types import HookContext, HookResult, Phase
from eduhooks.metadata.loader import EntityModel
from eduhooks.triggers.common import emit, normalize_on_add, normalize_on_set, sanitize_on_set

logger = logging.getLogger(__name__)

ENTITY = "Session"
OWNER_FIELD = "userId"


def _owner_entity(session: EntityModel) -> str:
    field = session.get_field(OWNER_FIELD)
    if field is not None and field.relation is not None:
        return field.relation.entity
    return "Account"


def _purge(ctx: HookContext, session: EntityModel) -> None:
    """Delete the session; a session someone else already removed is fine."""
    try:
        ctx.services.store.delete(session, ctx.record_id)
    except Exception as e:
        logger.error("Failed to delete session %s: %s", ctx.record_id, e)


async def guard_orphaned_session(ctx: HookContext) -> HookResult | None:
    """Exclude and delete a fetched session whose account cannot be resolved.

    Resolution errors count as missing: a session is never returned unless
    its owner was positively found.
    """
    owner_id = ctx.record.get(OWNER_FIELD)
    if not owner_id or ctx.services is None:
        return None

    metadata = ctx.services.metadata
    session = metadata.require_entity(ctx.entity_name)
    try:
        owner = ctx.services.store.get(metadata.require_entity(_owner_entity(session)), owner_id)
    except Exception as e:
        logger.error("Error resolving owner %s of session %s: %s", owner_id, ctx.record_id, e)
        code = "SESSION_RESOLUTION_FAILED"
        message = f"Could not resolve account {owner_id}: {e}"
    else:
        if owner is not None:
            return None
        code = "ORPHANED_SESSION"
        message = f"Account {owner_id} no longer exists"

    _purge(ctx, session)
    emit(ctx, EventKind.FAIL_SAFE_DELETION, code, message, userId=owner_id)
    return HookResult(exclude=True)


def register(registry: HookRegistry) -> None:
    registry.register(
        ENTITY, Phase.BEFORE_ADD, "normalize", normalize_on_add,
        "Stamp timestamps and default expiresAt",
    )
    registry.register(ENTITY, Phase.BEFORE_SET, "normalize", normalize_on_set)
    registry.register(ENTITY, Phase.BEFORE_SET, "sanitize", sanitize_on_set)
    registry.register(
        ENTITY, Phase.GET, "guard_orphaned_session", guard_orphaned_session,
        "Delete and hide sessions whose account is gone",
    )
