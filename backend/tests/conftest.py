"""Shared fixtures: built-in metadata, an in-memory store and a pipeline."""

import pytest

from eduhooks.hooks.events import RecordingEventSink
from eduhooks.metadata.loader import load_builtin_metadata
from eduhooks.persistence.sqlite import SQLiteAdapter
from eduhooks.pipeline import EntityPipeline
from eduhooks.triggers import build_registry


@pytest.fixture
def metadata():
    return load_builtin_metadata()


@pytest.fixture
def store(metadata):
    """In-memory SQLite store with a table per entity."""
    adapter = SQLiteAdapter(":memory:")
    adapter.connect()
    for name in metadata.list_entities():
        adapter.initialize_entity(metadata.require_entity(name))
    yield adapter
    adapter.close()


@pytest.fixture
def events():
    return RecordingEventSink()


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def pipeline(store, metadata, registry, events):
    return EntityPipeline(store, metadata, registry=registry, events=events)
