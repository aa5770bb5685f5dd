"""Metadata CLI commands."""

from pathlib import Path

import click

from eduhooks.exceptions import MetadataError
from eduhooks.metadata.loader import BUILTIN_METADATA_PATH, MetadataLoader


def load_metadata(metadata_path: Path | None) -> MetadataLoader:
    """Load metadata or exit with the loader's error."""
    loader = MetadataLoader(metadata_path or BUILTIN_METADATA_PATH)
    try:
        loader.load_all()
    except MetadataError as e:
        click.echo(click.style(f"Metadata error: {e.message}", fg="red"), err=True)
        raise SystemExit(1)
    return loader


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@click.option(
    "--path",
    "metadata_path",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory containing entities/*.yaml (defaults to the built-in set).",
)
def show(metadata_path: Path | None):
    """List entities with field counts and unique fields."""
    loader = load_metadata(metadata_path)
    names = sorted(loader.list_entities())

    click.echo(f"Loaded {len(names)} entities:")
    for name in names:
        entity = loader.require_entity(name)
        unique = ", ".join(entity.unique_fields) or "-"
        click.echo(
            f"  ✓ {name} [{entity.abbreviation}] "
            f"({len(entity.fields)} fields, unique: {unique})"
        )
