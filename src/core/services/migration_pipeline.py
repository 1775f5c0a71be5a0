"""Migration orchestration.

This module owns the fixed, ordered pipeline:

    AUTH_ORIGIN -> AUTH_DESTINATION -> CLEAR_DESTINATION (optional)
      -> MIGRATE_CARDS -> MIGRATE_DECKS -> ASSOCIATE_CARDS -> DONE

Each stage is awaited before the next starts because it consumes the previous
stage's output; the work inside a stage fans out through `run_all`. Side
effects meant for humans (stage banners, summary tables) stay in the CLI, which
observes the run through `PipelineHooks`. Any failure aborts the run with no
rollback, so the destination may be left partially migrated.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import httpx

from adapters.http_client import build_async_client
from adapters.uaa_client import request_token
from adapters.views_client import ViewsClient
from core.config import MigrationConfig, RunState
from core.interfaces.views_api import ViewsApi
from core.services.resource_migrator import (
    associate_cards,
    build_id_map,
    create_all,
    delete_all,
    fetch_all,
    tag_all,
    validate_items,
)

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    AUTH_ORIGIN = "auth_origin"
    AUTH_DESTINATION = "auth_destination"
    CLEAR_DESTINATION = "clear_destination"
    MIGRATE_CARDS = "migrate_cards"
    MIGRATE_DECKS = "migrate_decks"
    ASSOCIATE_CARDS = "associate_cards"
    DONE = "done"


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (stage progress)."""

    stage_started: Callable[[Stage, str], None] | None = None
    stage_finished: Callable[[Stage, str], None] | None = None


@dataclass
class MigrationResult:
    """Counts describing what a completed run did."""

    cleared_cards: int = 0
    cleared_decks: int = 0
    cards_migrated: int = 0
    decks_migrated: int = 0
    cards_tagged: int = 0
    decks_tagged: int = 0
    destination_associations: int = 0
    origin_associations: int = 0
    stages: list[Stage] = field(default_factory=list)


class MigrationPipeline:
    """Runs one migration. Not reusable: tokens live in its `RunState`."""

    def __init__(
        self,
        config: MigrationConfig,
        *,
        http: httpx.AsyncClient,
        views: ViewsApi | None = None,
        hooks: PipelineHooks | None = None,
    ) -> None:
        self._config = config
        self._http = http
        self._views = views or ViewsClient(http)
        self._hooks = hooks or PipelineHooks()
        self.state = RunState()
        self.result = MigrationResult()

    def _start(self, stage: Stage, message: str) -> None:
        logger.debug("Stage %s started", stage.value)
        if self._hooks.stage_started:
            self._hooks.stage_started(stage, message)

    def _finish(self, stage: Stage, message: str = "OK") -> None:
        self.result.stages.append(stage)
        if self._hooks.stage_finished:
            self._hooks.stage_finished(stage, message)

    async def run(self) -> MigrationResult:
        await self.authenticate_origin()
        await self.authenticate_destination()
        if self._config.clear_destination:
            await self.clear_destination()
        _, card_ids = await self.migrate_cards()
        decks, deck_ids = await self.migrate_decks()
        await self.associate(decks, deck_ids=deck_ids, card_ids=card_ids)
        self._finish(Stage.DONE, "Finished migrating the Predix Views service.")
        return self.result

    async def authenticate_origin(self) -> None:
        cfg = self._config
        self._start(Stage.AUTH_ORIGIN, f"Retrieving token for origin {cfg.original_views_zone_id}")
        token = await request_token(self._http, cfg.original_uaa_url, cfg.original_uaa_credentials)
        self.state.original_token = token.access_token
        self._finish(Stage.AUTH_ORIGIN)

    async def authenticate_destination(self) -> None:
        cfg = self._config
        self._start(
            Stage.AUTH_DESTINATION,
            f"Retrieving token for destination {cfg.destination_views_zone_id}",
        )
        token = await request_token(self._http, cfg.destination_uaa_url, cfg.destination_uaa_credentials)
        self.state.destination_token = token.access_token
        self._finish(Stage.AUTH_DESTINATION)

    async def clear_destination(self) -> None:
        cfg = self._config
        zone = self.state.destination_zone(cfg)
        self._start(Stage.CLEAR_DESTINATION, f"Deleting data from destination {zone.zone_id}")

        cards = await fetch_all(self._views, zone.cards_url, zone)
        decks = await fetch_all(self._views, zone.decks_url, zone)
        # Decks go after cards, never interleaved with them.
        await delete_all(
            self._views, cards, zone.cards_url, zone, kind="card", max_concurrency=cfg.max_concurrency
        )
        await delete_all(
            self._views, decks, zone.decks_url, zone, kind="deck", max_concurrency=cfg.max_concurrency
        )

        self.result.cleared_cards = len(cards)
        self.result.cleared_decks = len(decks)
        self._finish(Stage.CLEAR_DESTINATION, f"Deleted {len(cards)} cards and {len(decks)} decks")

    async def migrate_cards(self) -> tuple[list[dict], dict[str, str]]:
        cfg = self._config
        origin = self.state.origin_zone(cfg)
        destination = self.state.destination_zone(cfg)
        self._start(Stage.MIGRATE_CARDS, f"Retrieving all cards for instance {origin.zone_id}")

        cards = await fetch_all(self._views, origin.cards_url, origin)
        validate_items(cards, "card")
        logger.info("Found %d total cards, posting to %s", len(cards), destination.zone_id)
        created = await create_all(self._views, cards, destination.cards_url, destination)
        card_ids = build_id_map(cards, created, kind="card")

        self.result.cards_migrated = len(cards)
        self.result.cards_tagged = await tag_all(
            self._views,
            cards,
            destination.cards_url,
            destination,
            kind="card",
            id_map=card_ids,
            max_concurrency=cfg.max_concurrency,
        )
        self._finish(Stage.MIGRATE_CARDS, f"Migrated {len(cards)} cards")
        return cards, card_ids

    async def migrate_decks(self) -> tuple[list[dict], dict[str, str]]:
        cfg = self._config
        origin = self.state.origin_zone(cfg)
        destination = self.state.destination_zone(cfg)
        self._start(Stage.MIGRATE_DECKS, f"Retrieving all decks for instance {origin.zone_id}")

        decks = await fetch_all(self._views, origin.decks_url, origin, include_cards=True)
        validate_items(decks, "deck")
        logger.info("Found %d total decks, posting to %s", len(decks), destination.zone_id)
        created = await create_all(self._views, decks, destination.decks_url, destination)
        deck_ids = build_id_map(decks, created, kind="deck")

        self.result.decks_migrated = len(decks)
        self.result.decks_tagged = await tag_all(
            self._views,
            decks,
            destination.decks_url,
            destination,
            kind="deck",
            id_map=deck_ids,
            max_concurrency=cfg.max_concurrency,
        )
        self._finish(Stage.MIGRATE_DECKS, f"Migrated {len(decks)} decks")
        return decks, deck_ids

    async def associate(
        self,
        decks: list[dict],
        *,
        deck_ids: dict[str, str],
        card_ids: dict[str, str],
    ) -> None:
        cfg = self._config
        origin = self.state.origin_zone(cfg)
        destination = self.state.destination_zone(cfg)
        self._start(Stage.ASSOCIATE_CARDS, "Posting cards to decks")

        jobs = [
            associate_cards(
                self._views,
                decks,
                destination.decks_url,
                destination,
                deck_ids=deck_ids,
                card_ids=card_ids,
                max_concurrency=cfg.max_concurrency,
            )
        ]
        if cfg.associate_origin:
            jobs.append(
                associate_cards(
                    self._views,
                    decks,
                    origin.decks_url,
                    origin,
                    max_concurrency=cfg.max_concurrency,
                )
            )

        # Both sides settle before a failure on either one is raised.
        results = await asyncio.gather(*jobs, return_exceptions=True)
        for outcome in results:
            if isinstance(outcome, BaseException):
                raise outcome

        self.result.destination_associations = results[0]
        if cfg.associate_origin:
            self.result.origin_associations = results[1]
        self._finish(Stage.ASSOCIATE_CARDS, f"Associated cards to {results[0]} decks")


async def migrate(
    config: MigrationConfig,
    *,
    http_client: httpx.AsyncClient | None = None,
    hooks: PipelineHooks | None = None,
) -> MigrationResult:
    """Run the whole migration described by `config`.

    A caller-supplied `http_client` is used as-is and left open; otherwise one
    is built from the config and closed when the run ends.
    """

    if http_client is not None:
        return await MigrationPipeline(config, http=http_client, hooks=hooks).run()

    async with build_async_client(config) as client:
        return await MigrationPipeline(config, http=client, hooks=hooks).run()
