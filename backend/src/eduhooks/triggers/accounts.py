"""Account lifecycle hooks.

beforeAdd:    strip credentials, normalize, warn on students without a teacher
beforeSet:    strip credentials, normalize, sanitize
beforeRemove: log
afterAdd:     schedule the role profile
followingSet: reconcile the stored avatar address
"""

import logging

from eduhooks.hooks.events import EventKind
from eduhooks.hooks.registry import HookRegistry
from eduhooks.hooks.types import HookContext, HookResult, Phase
from eduhooks.triggers.cascade import schedule_profile_cascade
from eduhooks.triggers.common import (
    emit,
    log_removal,
    normalize_on_add,
    normalize_on_set,
    sanitize_on_set,
    strip_credentials,
)
from eduhooks.triggers.normalize import ROLE_SCHOOL_ADMIN, ROLE_STUDENT, canonical_blob_src

logger = logging.getLogger(__name__)

ENTITY = "Account"


async def warn_student_without_teacher(ctx: HookContext) -> None:
    if ctx.record.get("role") == ROLE_STUDENT and not ctx.record.get("teacherId"):
        logger.warning("Student %s created without teacherId", ctx.record.get("email"))
        emit(
            ctx,
            EventKind.SOFT_FAIL,
            "STUDENT_WITHOUT_TEACHER",
            "Student account created without a teacher reference",
            email=ctx.record.get("email"),
        )


async def schedule_profile(ctx: HookContext) -> HookResult | None:
    intents = schedule_profile_cascade(ctx.record)
    if not intents and ctx.record.get("role") == ROLE_SCHOOL_ADMIN:
        # Profile is skipped, not failed; the school may be attached later
        logger.warning("School admin %s created without schoolId", ctx.record.get("email"))
        emit(
            ctx,
            EventKind.SOFT_FAIL,
            "SCHOOL_ADMIN_WITHOUT_SCHOOL",
            "School admin account created without a school reference; no profile created",
            email=ctx.record.get("email"),
        )
    if not intents:
        return None
    return HookResult(intents=intents)


async def reconcile_avatar(ctx: HookContext) -> None:
    """Rewrite a committed avatar whose src is not the canonical blob address.

    Reads the record again instead of trusting ``ctx.record``: another writer
    may have touched it since the commit.
    """
    if ctx.services is None or "image" not in (ctx.payload or {}):
        return

    store = ctx.services.store
    entity = ctx.services.metadata.require_entity(ctx.entity_name)
    current = store.get(entity, ctx.record_id)
    image = (current or {}).get("image")
    if not isinstance(image, dict) or not image.get("key"):
        return

    canonical = canonical_blob_src(image["key"], ctx.settings)
    if image.get("src") == canonical:
        return

    store.update(entity, ctx.record_id, {"image": {**image, "src": canonical}})
    emit(
        ctx,
        EventKind.SILENT_CORRECTION,
        "AVATAR_SRC_RECONCILED",
        f"Avatar src rewritten to {canonical}",
        previous=image.get("src"),
        src=canonical,
    )


def register(registry: HookRegistry) -> None:
    registry.register(
        ENTITY, Phase.BEFORE_ADD, "strip_credentials", strip_credentials,
        "Drop credential-shaped fields",
    )
    registry.register(
        ENTITY, Phase.BEFORE_ADD, "normalize", normalize_on_add,
        "Derive name, role, slug and student identity; stamp timestamps",
    )
    registry.register(
        ENTITY, Phase.BEFORE_ADD, "warn_student_without_teacher", warn_student_without_teacher,
        "Soft-fail when a student has no teacherId",
    )
    registry.register(
        ENTITY, Phase.BEFORE_SET, "strip_credentials", strip_credentials,
        "Drop credential-shaped fields",
    )
    registry.register(
        ENTITY, Phase.BEFORE_SET, "normalize", normalize_on_set,
        "Re-stamp updatedAt, regenerate slug, normalize image",
    )
    registry.register(
        ENTITY, Phase.BEFORE_SET, "sanitize", sanitize_on_set,
        "Drop fields outside the Account allowlist",
    )
    registry.register(ENTITY, Phase.BEFORE_REMOVE, "log_removal", log_removal)
    registry.register(
        ENTITY, Phase.AFTER_ADD, "schedule_profile", schedule_profile,
        "Create the role profile for the new account",
    )
    registry.register(
        ENTITY, Phase.FOLLOWING_SET, "reconcile_avatar", reconcile_avatar,
        "Rewrite a non-canonical avatar src after commit",
    )
