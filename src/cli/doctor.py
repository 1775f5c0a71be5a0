"""Doctor command for configuration and connectivity diagnostics."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.uaa_client import request_token
from core.config import DEFAULT_CONFIG_FILE, MigrationConfig, load_config
from core.errors import AuthenticationError, ConfigError

app = typer.Typer(no_args_is_help=True, help="Configuration and connectivity checks.")

_console = Console()


async def _check_token(config: MigrationConfig, auth_url: str, credentials: str) -> tuple[bool, str]:
    async with build_async_client(config) as client:
        try:
            token = await request_token(client, auth_url, credentials)
        except AuthenticationError as exc:
            return False, str(exc)
    return True, f"{token.token_type or 'bearer'} token, expires in {token.expires_in or '?'}s"


async def _check_tokens(config: MigrationConfig) -> list[tuple[bool, str]]:
    return list(
        await asyncio.gather(
            _check_token(config, config.original_uaa_url, config.original_uaa_credentials),
            _check_token(config, config.destination_uaa_url, config.destination_uaa_credentials),
        )
    )


@app.command()
def run(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        dir_okay=False,
        help="JSON config file (camelCase keys). Defaults to ./views-config.json when present.",
    ),
) -> None:
    """Validate the config and try both token exchanges. No views data is read or written."""

    table = Table(title="views-migrate doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        table.add_row("Config", "FAIL", str(exc))
        _console.print(table)
        raise typer.Exit(code=1) from exc

    table.add_row("Config", "OK", str(config_path or DEFAULT_CONFIG_FILE))
    if config.original_views_zone_id == config.destination_views_zone_id:
        table.add_row("Zones", "WARN", "Origin and destination share a zone id")
    else:
        table.add_row("Zones", "OK", f"{config.original_views_zone_id} -> {config.destination_views_zone_id}")
    table.add_row(
        "Clear destination",
        "ON" if config.clear_destination else "OFF",
        "Destination cards and decks will be deleted first" if config.clear_destination else "",
    )
    table.add_row("Concurrency", "OK", str(config.max_concurrency or "unbounded"))

    (ok_origin, detail_origin), (ok_destination, detail_destination) = asyncio.run(_check_tokens(config))
    table.add_row("Origin UAA", "OK" if ok_origin else "FAIL", detail_origin)
    table.add_row("Destination UAA", "OK" if ok_destination else "FAIL", detail_destination)

    _console.print(table)

    if not (ok_origin and ok_destination):
        raise typer.Exit(code=1)


@app.command(name="init-config")
def init_config(
    output: Path = typer.Option(DEFAULT_CONFIG_FILE, "--output", "-o", dir_okay=False),
) -> None:
    """Interactive setup that writes a views-config.json.

    Credentials are the pre-encoded Basic value (base64 of `client:secret`).
    """

    if output.exists():
        typer.confirm(f"{output} exists. Overwrite?", abort=True)

    values: dict[str, object] = {}
    for side in ("original", "destination"):
        label = "Origin" if side == "original" else "Destination"
        values[f"{side}ViewsUrl"] = typer.prompt(f"{label} views URL").strip()
        values[f"{side}ViewsZoneId"] = typer.prompt(f"{label} zone id").strip()
        values[f"{side}UaaUrl"] = typer.prompt(f"{label} UAA URL").strip()
        values[f"{side}UaaCredentials"] = typer.prompt(
            f"{label} UAA credentials (base64)", hide_input=True
        ).strip()
    values["clearDestination"] = typer.confirm("Clear the destination before migrating?", default=False)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(values, indent=2) + "\n", encoding="utf-8")
    _console.print(f"[green]Saved config to:[/green] {output}")
