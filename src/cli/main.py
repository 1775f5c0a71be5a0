"""views-migrate command line.

Commands:
- `migrate`: run the full origin -> destination migration.
- `doctor`: check configuration and both token exchanges without touching data.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.text import Text

from cli import doctor
from cli.ui_components import (
    build_config_table,
    build_stage_hooks,
    build_summary_table,
    configure_logging,
    print_banner,
)
from core.config import load_config
from core.errors import MigrationError
from core.services.migration_pipeline import migrate as run_migration

app = typer.Typer(
    no_args_is_help=True,
    help="Migrate cards, decks and tags between two views service zones.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    exists=False,
    dir_okay=False,
    help="JSON config file (camelCase keys). Defaults to ./views-config.json when present.",
)


@app.command()
def migrate(
    config_path: Optional[Path] = ConfigOption,
    clear_destination: Optional[bool] = typer.Option(
        None,
        "--clear-destination/--keep-destination",
        help="Delete every destination card and deck first (overrides the config file).",
    ),
    max_concurrency: Optional[int] = typer.Option(
        None,
        "--max-concurrency",
        min=1,
        help="Cap simultaneous per-item requests (default: unbounded).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=0.001,
        help="Per-request timeout in seconds (default: none).",
    ),
    associate_origin: Optional[bool] = typer.Option(
        None,
        "--associate-origin/--skip-origin-association",
        help="Also post deck/card associations back to the origin zone.",
    ),
    no_banner: bool = typer.Option(False, "--no-banner", help="Do not print the banner."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every per-item request."),
    debug: bool = typer.Option(False, "--debug", help="Debug logging, including httpx."),
) -> None:
    """Run the migration."""

    configure_logging(_console, verbose=verbose, debug=debug)

    try:
        config = load_config(
            config_path,
            clear_destination=clear_destination,
            max_concurrency=max_concurrency,
            http_timeout_seconds=timeout,
            associate_origin=associate_origin,
        )
        if not no_banner:
            print_banner(_console, config)
        _console.print(build_config_table(config))
        result = asyncio.run(run_migration(config, hooks=build_stage_hooks(_console)))
    except MigrationError as exc:
        _console.print(Text(str(exc), style="bold red"))
        raise typer.Exit(code=1) from exc

    _console.print(build_summary_table(result))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
