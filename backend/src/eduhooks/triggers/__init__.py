"""Built-in lifecycle hooks for the education entities.

The registration table is assembled once at startup:

    registry = build_registry()
    registry.resolve("Account", Phase.AFTER_ADD)
"""

from eduhooks.hooks.registry import HookRegistry
from eduhooks.hooks.types import Phase
from eduhooks.triggers import accounts, sessions
from eduhooks.triggers.common import (
    log_removal,
    normalize_on_add,
    normalize_on_set,
    sanitize_on_set,
)

# Created and edited through plain CRUD; normalization only
CATALOG_ENTITIES = ("GradeLevel", "EducationalContext")

# Written only by the Account cascade
PROFILE_ENTITIES = ("TeacherProfile", "StudentProfile", "SchoolAdminProfile")


def register_builtin_hooks(registry: HookRegistry) -> None:
    """Register every built-in hook. Safe to call more than once."""
    accounts.register(registry)
    sessions.register(registry)

    for entity in CATALOG_ENTITIES:
        registry.register(entity, Phase.BEFORE_ADD, "normalize", normalize_on_add)
        registry.register(entity, Phase.BEFORE_SET, "normalize", normalize_on_set)
        registry.register(entity, Phase.BEFORE_SET, "sanitize", sanitize_on_set)
        registry.register(entity, Phase.BEFORE_REMOVE, "log_removal", log_removal)

    for entity in PROFILE_ENTITIES:
        registry.register(entity, Phase.BEFORE_ADD, "stamp", normalize_on_add)
        registry.register(entity, Phase.BEFORE_SET, "stamp", normalize_on_set)
        registry.register(entity, Phase.BEFORE_SET, "sanitize", sanitize_on_set)


def build_registry() -> HookRegistry:
    """A fresh registry holding the built-in hooks."""
    registry = HookRegistry()
    register_builtin_hooks(registry)
    return registry


__all__ = ["build_registry", "register_builtin_hooks"]
