"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from presentation details.
- Lets `migrate` and `doctor` share banners, tables and the log handler.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from core.config import MigrationConfig
from core.services.migration_pipeline import MigrationResult, PipelineHooks, Stage


def print_banner(console: Console, config: MigrationConfig) -> None:
    """One rule naming the migration route, origin zone first."""

    route = Text.assemble(
        ("views-migrate  ", "bold"),
        (config.original_views_zone_id, "cyan"),
        " -> ",
        (config.destination_views_zone_id, "magenta"),
    )
    console.rule(route, style="dim")


def configure_logging(console: Console, *, verbose: bool = False, debug: bool = False) -> None:
    """Route stdlib logging through Rich.

    Per-item progress lines are INFO, so they only show with `--verbose`.
    """

    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=debug, markup=False)],
        force=True,
    )
    if not debug:
        for noisy in ("httpx", "httpcore"):
            logging.getLogger(noisy).setLevel(logging.WARNING)


def build_stage_hooks(console: Console) -> PipelineHooks:
    def started(stage: Stage, message: str) -> None:
        console.print(f"[bold]{message}[/bold]")

    def finished(stage: Stage, message: str) -> None:
        if stage is Stage.DONE:
            console.print(f"\n[bold]{message}[/bold]")
        else:
            console.print(f"[bold green]{message}[/bold green]\n")

    return PipelineHooks(stage_started=started, stage_finished=finished)


def build_config_table(config: MigrationConfig) -> Table:
    """Origin/destination side by side; credentials are never shown."""

    table = Table(title="Migration")
    table.add_column("", style="bold", no_wrap=True)
    table.add_column("Origin", style="cyan")
    table.add_column("Destination", style="magenta")
    table.add_row("Views URL", config.original_views_url, config.destination_views_url)
    table.add_row("Zone ID", config.original_views_zone_id, config.destination_views_zone_id)
    table.add_row("UAA URL", config.original_uaa_url, config.destination_uaa_url)
    table.add_row("Clear first", "", "yes" if config.clear_destination else "no")
    return table


def build_summary_table(result: MigrationResult) -> Table:
    table = Table(title="Summary")
    table.add_column("Resource", style="cyan", no_wrap=True)
    table.add_column("Cleared", justify="right")
    table.add_column("Migrated", justify="right", style="green")
    table.add_column("Tagged", justify="right")
    table.add_row(
        "cards",
        str(result.cleared_cards),
        str(result.cards_migrated),
        str(result.cards_tagged),
    )
    table.add_row(
        "decks",
        str(result.cleared_decks),
        str(result.decks_migrated),
        str(result.decks_tagged),
    )
    table.caption = (
        f"Card associations: {result.destination_associations} destination decks, "
        f"{result.origin_associations} origin decks"
    )
    return table
