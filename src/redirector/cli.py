"""CLI interface for redirector.

Command-line tool for serving and inspecting configured redirects.
"""

import logging
import sys
import tomllib
from pathlib import Path
from typing import NoReturn

import click

from redirector.config import LOG_LEVELS, Config
from redirector.core.renderer import group_by_category
from redirector.core.resolver import Redirect, ShowIndex, resolve
from redirector.core.search import suggest
from redirector.core.table import RedirectTable

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="Path to configuration file (default: auto-discover redirects.toml)",
)


@click.group()
def cli() -> None:
    """Redirector - short names to permanent redirects."""


@cli.command()
@config_option
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--base-domain",
    "-d",
    default=None,
    help="Base domain redirects are served under (overrides config)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level (overrides config)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging",
)
def serve(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    base_domain: str | None,
    log_level: str | None,
    verbose: bool,
) -> None:
    """Start the redirect server."""
    from redirector.server import run_server

    config = _load_config(config_path).with_overrides(
        host=host,
        port=port,
        base_domain=base_domain,
        log_level="debug" if verbose else log_level,
    )
    logging.basicConfig(level=config.logging.level_number, format=LOG_FORMAT)

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Configuration: {config.config_path}")
    click.echo(f"Base domain: {config.site.base_domain}")
    click.echo(f"Redirects: {len(config.redirects)}")

    run_server(config)


@cli.command()
@config_option
def check(config_path: Path | None) -> None:
    """Validate the configuration file."""
    config = _load_config(config_path)
    table = RedirectTable(config.redirects)
    categories = {entry.category for _, entry in table.items() if entry.category}

    click.echo(click.style(f"Configuration OK: {config.config_path}", fg="green"))
    click.echo(f"Redirects: {len(table)}")
    click.echo(f"Aliases: {len(table.alias_index)}")
    click.echo(f"Categories: {len(categories)}")


@cli.command(name="list")
@config_option
def list_redirects(config_path: Path | None) -> None:
    """List redirects grouped by category."""
    config = _load_config(config_path)
    table = RedirectTable(config.redirects)

    for i, group in enumerate(group_by_category(table)):
        if i:
            click.echo()
        click.echo(click.style(group.name, bold=True))
        for key, entry in group.entries:
            aliases = f" ({', '.join(entry.aliases)})" if entry.aliases else ""
            click.echo(f"  {key}{aliases} -> {entry.target_url}")
            click.echo(f"      {entry.description}")


@cli.command(name="resolve")
@config_option
@click.argument("host")
@click.argument("path", default="/")
def resolve_command(config_path: Path | None, host: str, path: str) -> None:
    """Show how a request for HOST and PATH would be answered."""
    config = _load_config(config_path)
    table = RedirectTable(config.redirects)

    path = path.split("?", 1)[0]
    outcome = resolve(host, path, table, base_domain=config.site.base_domain)

    if isinstance(outcome, Redirect):
        click.echo(f"308 -> {outcome.target_url} ({outcome.source} '{outcome.key}')")
    elif isinstance(outcome, ShowIndex):
        click.echo("200 index page")
    else:
        click.echo("404 not found")
        suggestions = suggest(table, outcome.key) if outcome.key else []
        if suggestions:
            click.echo(f"Did you mean: {', '.join(suggestions)}")
        sys.exit(1)


def _load_config(config_path: Path | None) -> Config:
    """Load configuration or exit with an error.

    Args:
        config_path: Explicit config path, None to auto-discover

    Returns:
        Loaded configuration

    Raises:
        SystemExit: If the configuration cannot be loaded
    """
    try:
        return Config.load(config_path)
    except tomllib.TOMLDecodeError as e:
        _fail(f"Invalid TOML: {e}")
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
