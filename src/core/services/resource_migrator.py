"""Per-resource procedures: fetch, bulk delete, bulk create, tag, associate.

Each procedure is one views call or one fan-out of views calls through
`run_all`. Items are raw JSON dicts as returned by the service; the domain
models are only used to read the fields the migration needs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from core.domain.models import Card, Deck, ZoneContext
from core.errors import IdMappingError, InvalidItemError, UnexpectedPayloadError
from core.interfaces.views_api import ViewsApi
from core.services.bulk_runner import run_all

logger = logging.getLogger(__name__)

INCLUDE_CARDS_PARAM = "filter[include][cards]"

Item = dict[str, Any]


def parse_item(raw: Item, kind: str = "card") -> Card | Deck:
    model = Deck if kind == "deck" else Card
    if not isinstance(raw, dict):
        raise InvalidItemError(kind, raw, "expected a JSON object")
    try:
        return model.from_raw(raw)
    except ValidationError as exc:
        raise InvalidItemError(kind, raw, str(exc)) from exc


def item_id(raw: Item, kind: str = "card") -> str:
    return parse_item(raw, kind).id


def validate_items(items: Sequence[Item], kind: str = "card") -> None:
    """Raise `InvalidItemError` for the first item the migration cannot read."""

    for raw in items:
        parse_item(raw, kind)


def item_tags(raw: Item, kind: str = "card") -> list[dict[str, str]]:
    """Tag payload for `POST .../tags`, empty when the item has no tags."""

    return [{"value": tag.value} for tag in parse_item(raw, kind).tags]


@dataclass
class CreateResult:
    """Outcome of a bulk create.

    `items` is the destination collection fetched after the POST; `created` is
    the POST response when the service echoed the created items as a list.
    """

    items: list[Item]
    created: list[Item] = field(default_factory=list)


async def fetch_all(
    client: ViewsApi,
    url: str,
    zone: ZoneContext,
    *,
    include_cards: bool = False,
) -> list[Item]:
    params = {INCLUDE_CARDS_PARAM: ""} if include_cards else None
    response = await client.call(url, zone, params=params)
    if not isinstance(response.body, list):
        raise UnexpectedPayloadError(
            url=url,
            method="GET",
            zone_id=zone.zone_id,
            status_code="2xx (expected a JSON array)",
            response_body=response.body,
        )
    return response.body


async def delete_all(
    client: ViewsApi,
    items: Sequence[Item],
    url: str,
    zone: ZoneContext,
    *,
    kind: str = "card",
    max_concurrency: int | None = None,
) -> None:
    logger.info("Deleting %d %ss from %s", len(items), kind, zone.zone_id)

    async def delete_one(item: Item) -> None:
        ident = item_id(item, kind)
        await client.call(f"{url}/{ident}", zone, method="DELETE")
        logger.info("Deleted %s %s from %s", kind, ident, zone.zone_id)

    await run_all(items, delete_one, max_concurrency=max_concurrency)


async def create_all(
    client: ViewsApi,
    items: Sequence[Item],
    url: str,
    zone: ZoneContext,
) -> CreateResult:
    """POST the whole array in one request, then GET the resulting collection."""

    response = await client.call(url, zone, method="POST", body=list(items))
    created = response.body if isinstance(response.body, list) else []
    collection = await fetch_all(client, url, zone)
    return CreateResult(items=collection, created=created)


def build_id_map(
    origin: Sequence[Item],
    result: CreateResult,
    *,
    kind: str = "card",
) -> dict[str, str]:
    """Map origin ids to destination ids.

    When the POST echoed one created item per submitted item, the echo is
    paired with the origin list by position; the destination may already hold
    unrelated items under the same ids, so the collection is not consulted.
    Without a usable echo, an origin id present in the destination collection
    maps to itself (the service kept the submitted id).
    """

    origin_ids = [item_id(raw, kind) for raw in origin]
    echoed = [item_id(item, kind) for item in result.created]
    if len(echoed) == len(origin_ids):
        return dict(zip(origin_ids, echoed))

    destination_ids = {item_id(item, kind) for item in result.items}
    mapping: dict[str, str] = {}
    for origin_id in origin_ids:
        if origin_id not in destination_ids:
            raise IdMappingError(kind, origin_id)
        mapping[origin_id] = origin_id
    return mapping


def _translate(mapping: Mapping[str, str] | None, ident: str, kind: str) -> str:
    if mapping is None:
        return ident
    try:
        return mapping[ident]
    except KeyError:
        raise IdMappingError(kind, ident) from None


async def tag_all(
    client: ViewsApi,
    items: Sequence[Item],
    url: str,
    zone: ZoneContext,
    *,
    kind: str = "card",
    id_map: Mapping[str, str] | None = None,
    max_concurrency: int | None = None,
) -> int:
    """Post each item's tags to its destination counterpart.

    Items without tags are skipped without a request. Returns the number of
    items that were tagged.
    """

    tagged = [item for item in items if item_tags(item, kind)]
    logger.debug("%d of %d %ss carry tags", len(tagged), len(items), kind)

    async def tag_one(item: Item) -> None:
        tags = item_tags(item, kind)
        target = _translate(id_map, item_id(item, kind), kind)
        await client.call(f"{url}/{target}/tags", zone, method="POST", body=tags)
        logger.info("Posted %d tags to %s", len(tags), target)

    await run_all(tagged, tag_one, max_concurrency=max_concurrency)
    return len(tagged)


async def associate_cards(
    client: ViewsApi,
    decks: Sequence[Item],
    decks_url: str,
    zone: ZoneContext,
    *,
    deck_ids: Mapping[str, str] | None = None,
    card_ids: Mapping[str, str] | None = None,
    max_concurrency: int | None = None,
) -> int:
    """Post each deck's card membership to `{decks_url}/{id}/cards/add`.

    Decks without cards are skipped. Returns the number of decks posted.
    """

    parsed = [parse_item(raw, "deck") for raw in decks]
    members = [deck for deck in parsed if deck.card_ids]

    async def associate_one(deck: Deck) -> None:
        target = _translate(deck_ids, deck.id, "deck")
        cards = [_translate(card_ids, ident, "card") for ident in deck.card_ids]
        logger.info("Posting %d cards to deck %s", len(cards), target)
        await client.call(f"{decks_url}/{target}/cards/add", zone, method="POST", body=cards)
        logger.info("Posted %d cards to deck %s", len(cards), target)

    await run_all(members, associate_one, max_concurrency=max_concurrency)
    return len(members)
