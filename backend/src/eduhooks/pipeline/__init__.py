"""Pipeline driver and its result types."""

from eduhooks.pipeline.driver import EntityPipeline
from eduhooks.pipeline.selectors import to_filter
from eduhooks.pipeline.types import BatchOutcome, CascadeFailure, WriteResult

__all__ = ["BatchOutcome", "CascadeFailure", "EntityPipeline", "WriteResult", "to_filter"]
