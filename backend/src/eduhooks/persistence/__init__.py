"""Persistence layer - store adapters the pipeline wraps."""

from eduhooks.persistence.adapter import EntityStore
from eduhooks.persistence.config import DatabaseConfig, create_adapter

__all__ = ["EntityStore", "DatabaseConfig", "create_adapter"]
