"""Hook CLI commands: inspect the registration table."""

import click

from eduhooks.triggers import build_registry


@click.group()
def hooks():
    """Hook registry commands."""
    pass


@hooks.command("list")
@click.option("--entity", default=None, help="Only show hooks for this entity.")
def list_cmd(entity: str | None):
    """Print the built-in hook registration table."""
    registry = build_registry()
    entries = registry.entries(entity)

    if not entries:
        target = f" for {entity}" if entity else ""
        click.echo(f"No hooks registered{target}.")
        return

    current = None
    for entry in entries:
        if entry.entity != current:
            current = entry.entity
            click.echo(click.style(current, bold=True))
        line = f"  {entry.phase.value:<16} {entry.name}"
        if entry.description:
            line += f": {entry.description}"
        click.echo(line)

    click.echo(f"\n{len(entries)} hook(s) across {len({e.entity for e in entries})} entities.")
