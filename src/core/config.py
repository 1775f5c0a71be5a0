"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without polluting the CLI.
- Lets adapters and the pipeline read one immutable, validated contract.

Sources, highest priority first: explicit values (CLI flags and the JSON config
file, see `load_config`), `VIEWS_MIGRATE_*` environment variables, `.env` in the
working directory, then the per-user `.env`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
from pydantic import Field, ValidationError, field_validator
from pydantic.alias_generators import to_snake
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.models import ZoneContext
from core.errors import ConfigError

DEFAULT_CONFIG_FILE = Path("views-config.json")
APP_NAME = "views-migrate"


def get_user_env_file() -> Path:
    """Per-user `.env`, inside the platform config dir click resolves for the app."""

    return Path(typer.get_app_dir(APP_NAME)) / ".env"


class MigrationConfig(BaseSettings):
    """Immutable description of one migration run.

    Derived resource URLs are properties, so they can never drift from the base
    URLs they come from.
    """

    model_config = SettingsConfigDict(
        env_prefix="VIEWS_MIGRATE_",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        # Order: project first (dev), then the user-wide config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    original_views_url: str = Field(..., min_length=8, description="Base URL of the origin views instance.")
    destination_views_url: str = Field(..., min_length=8, description="Base URL of the destination views instance.")
    original_views_zone_id: str = Field(..., min_length=1, description="Predix-Zone-Id of the origin.")
    destination_views_zone_id: str = Field(..., min_length=1, description="Predix-Zone-Id of the destination.")
    original_uaa_url: str = Field(..., min_length=8, description="UAA issuing origin tokens.")
    destination_uaa_url: str = Field(..., min_length=8, description="UAA issuing destination tokens.")
    original_uaa_credentials: str = Field(
        ...,
        min_length=1,
        repr=False,
        description="Pre-encoded Basic credentials (base64 of client:secret) for the origin UAA.",
    )
    destination_uaa_credentials: str = Field(
        ...,
        min_length=1,
        repr=False,
        description="Pre-encoded Basic credentials for the destination UAA.",
    )
    clear_destination: bool = Field(
        default=False,
        description="Delete every destination card and deck before migrating.",
    )

    max_concurrency: int | None = Field(
        default=None,
        ge=1,
        le=10_000,
        description="Cap on simultaneous per-item requests in a bulk stage (None = unbounded).",
    )
    http_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-request timeout (None = wait forever).",
    )
    associate_origin: bool = Field(
        default=True,
        description="Also post deck/card associations back to the origin zone.",
    )

    @field_validator(
        "original_views_url",
        "destination_views_url",
        "original_uaa_url",
        "destination_uaa_url",
    )
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def original_cards_url(self) -> str:
        return f"{self.original_views_url}/api/cards"

    @property
    def original_decks_url(self) -> str:
        return f"{self.original_views_url}/api/decks"

    @property
    def destination_cards_url(self) -> str:
        return f"{self.destination_views_url}/api/cards"

    @property
    def destination_decks_url(self) -> str:
        return f"{self.destination_views_url}/api/decks"


@dataclass
class RunState:
    """Mutable per-run state: the two bearer tokens, set once after authentication."""

    original_token: str = ""
    destination_token: str = ""

    def origin_zone(self, config: MigrationConfig) -> ZoneContext:
        if not self.original_token:
            raise RuntimeError("origin token requested before authentication")
        return ZoneContext(
            zone_id=config.original_views_zone_id,
            token=self.original_token,
            base_url=config.original_views_url,
        )

    def destination_zone(self, config: MigrationConfig) -> ZoneContext:
        if not self.destination_token:
            raise RuntimeError("destination token requested before authentication")
        return ZoneContext(
            zone_id=config.destination_views_zone_id,
            token=self.destination_token,
            base_url=config.destination_views_url,
        )


def _parse_config_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    # views-config.json uses camelCase keys (originalViewsUrl, ...).
    return {to_snake(key): value for key, value in data.items()}


def load_config(path: Path | None = None, **overrides: Any) -> MigrationConfig:
    """Build the run configuration.

    `path` is optional: without it (and without the default `views-config.json`
    in the working directory) everything comes from the environment. `None`
    overrides are ignored so unset CLI flags do not mask file/env values.
    """

    values: dict[str, Any] = {}
    if path is not None:
        values.update(_parse_config_file(path))
    elif DEFAULT_CONFIG_FILE.is_file():
        values.update(_parse_config_file(DEFAULT_CONFIG_FILE))

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return MigrationConfig(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration:\n{exc}") from exc
