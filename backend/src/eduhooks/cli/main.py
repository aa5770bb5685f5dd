"""eduhooks CLI entry point."""

import click

from eduhooks.config import Settings, configure_logging


@click.group()
def cli():
    """eduhooks: entity lifecycle pipeline CLI."""
    configure_logging(Settings.from_env())


# Register subcommand groups
from eduhooks.cli.db_cmd import db, sessions  # noqa: E402
from eduhooks.cli.hooks_cmd import hooks  # noqa: E402
from eduhooks.cli.metadata_cmd import metadata  # noqa: E402

cli.add_command(db)
cli.add_command(hooks)
cli.add_command(metadata)
cli.add_command(sessions)
