"""CLI entry point for gh-usecases."""

import asyncio
import sys

import click
from pydantic import ValidationError as PydanticValidationError

from gh_usecases import __version__
from gh_usecases.config.settings import AppSettings
from gh_usecases.exceptions import GhUsecasesError
from gh_usecases.utils.logging_config import configure_logging, get_logger
from gh_usecases.wizard.app import WizardApp

log = get_logger(__name__)

NOT_INTERACTIVE_MESSAGE = (
    "Error: gh-usecases is an interactive wizard and needs a terminal.\n"
    "Run it directly in a terminal session instead of piping input to it."
)


def _is_interactive() -> bool:
    return sys.stdin.isatty()


@click.command()
@click.version_option(__version__, prog_name="gh-usecases")
def cli() -> None:
    """gh-usecases: create GitHub repositories and link them to teams."""
    if not _is_interactive():
        click.echo(NOT_INTERACTIVE_MESSAGE, err=True)
        sys.exit(1)

    try:
        settings = AppSettings()
    except PydanticValidationError as e:
        click.echo(f"Error: invalid environment configuration\n{e}", err=True)
        sys.exit(1)

    configure_logging(settings.effective_log_level, settings.log_file)

    try:
        asyncio.run(WizardApp.from_settings(settings).run())
    except GhUsecasesError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("wizard_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        log.error("wizard_unexpected", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
