"""Database CLI commands: table creation and session sweeping."""

import asyncio
from pathlib import Path

import click

from eduhooks.cli.metadata_cmd import load_metadata
from eduhooks.config import Settings
from eduhooks.hooks.events import EventKind, FanOutEventSink, LoggingEventSink, RecordingEventSink
from eduhooks.persistence.config import DatabaseConfig, create_adapter
from eduhooks.pipeline import EntityPipeline
from eduhooks.triggers import build_registry


def _resolve_base_path() -> Path:
    """Project root, whether run from the repo root or from backend/."""
    cwd = Path.cwd()
    if cwd.name == "backend":
        return cwd.parent
    return cwd


def _connect():
    config = DatabaseConfig.from_env(_resolve_base_path())
    if config.is_sqlite and config.sqlite_path != ":memory:":
        Path(config.sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    store = create_adapter(config)
    store.connect()
    return config, store


@click.group()
def db():
    """Database commands."""
    pass


@db.command()
def init():
    """Create tables for every entity."""
    loader = load_metadata(None)
    config, store = _connect()
    try:
        for name in sorted(loader.list_entities()):
            store.initialize_entity(loader.require_entity(name))
            click.echo(f"  ✓ {name}")
    finally:
        store.close()
    click.echo(click.style(f"Initialized {config.display_url}", fg="green"))


@click.group()
def sessions():
    """Session commands."""
    pass


@sessions.command()
def sweep():
    """Read every session through the pipeline so orphans are purged."""
    loader = load_metadata(None)
    _, store = _connect()
    recorder = RecordingEventSink()
    pipeline = EntityPipeline(
        store,
        loader,
        registry=build_registry(),
        settings=Settings.from_env(),
        events=FanOutEventSink(LoggingEventSink(), recorder),
    )
    try:
        survivors = asyncio.run(pipeline.get("Session"))
    finally:
        store.close()

    removed = recorder.of_kind(EventKind.FAIL_SAFE_DELETION)
    for event in removed:
        click.echo(f"  ✗ {event.record_id}: {event.message}")
    click.echo(f"Removed {len(removed)} session(s); {len(survivors)} remain.")
