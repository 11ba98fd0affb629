"""SchemaForge CLI entry point."""

import click

from schemaforge.config import EngineConfig
from schemaforge.logging_setup import configure_logging


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Log level name (overrides SCHEMAFORGE_LOG_LEVEL).",
)
def cli(log_level: str | None):
    """SchemaForge — declarative schema validation CLI."""
    try:
        level = log_level or EngineConfig.from_env().log_level
        configure_logging(level)
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)


# Register subcommand groups
from schemaforge.cli.schema_cmd import schema  # noqa: E402

cli.add_command(schema)
