"""Base exception classes for eduhooks.

Store-level rejections (``StoreError`` and subclasses) are the only errors
the pipeline lets reach its caller unchanged. Everything else the pipeline
corrects, skips or reports as a lifecycle event.
"""

from typing import Any


class EduHooksError(Exception):
    """Base exception for all eduhooks errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for callers that serialize errors."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class MetadataError(EduHooksError):
    """Entity metadata is missing or inconsistent."""


class UnknownEntityError(EduHooksError):
    """An operation referenced an entity with no metadata."""

    def __init__(self, entity: str):
        super().__init__(
            f"Unknown entity '{entity}'",
            code="UNKNOWN_ENTITY",
            details={"entity": entity},
        )
        self.entity = entity


class StoreError(EduHooksError):
    """The entity store rejected an operation."""


class UniqueConstraintError(StoreError):
    """A write violated a uniqueness constraint enforced by the store."""

    def __init__(self, entity: str, field: str | None = None, message: str = ""):
        target = f"{entity}.{field}" if field else entity
        super().__init__(
            message or f"Unique constraint violated on {target}",
            code="UNIQUE_VIOLATION",
            details={"entity": entity, "field": field},
        )
        self.entity = entity
        self.field = field


class HookAbortedError(EduHooksError):
    """A before-phase hook aborted the write."""

    def __init__(self, entity: str, phase: str, reason: str):
        super().__init__(
            reason,
            code="HOOK_ABORT",
            details={"entity": entity, "phase": phase},
        )
        self.entity = entity
        self.phase = phase
