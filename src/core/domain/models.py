"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Cards and decks are mostly opaque to the migration: `extra="allow"` keeps
  every attribute we do not know about so it round-trips verbatim.
- The few fields the pipeline does read (`id`, `tags`, card membership) get
  validated at the edge instead of deep inside a fan-out.

Note:
- The pipeline moves raw JSON dicts around; these models are views over them
  (`Card.from_raw`, `Deck.from_raw`) used wherever a field must be read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Tag(BaseModel):
    """Tag attached to a card or a deck. Not a standalone entity."""

    model_config = ConfigDict(extra="ignore")

    value: str = Field(..., description="Tag text.")


class CardRef(BaseModel):
    """Reference from a deck to one of its cards."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1, description="Card id.")


class Card(BaseModel):
    """Atomic content item of a views instance."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1, description="Server-assigned card id.")
    tags: list[Tag] = Field(
        default_factory=list,
        description="Tags attached to the card.",
    )

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "Card":
        return cls.model_validate({**raw, "tags": raw.get("tags") or []})


class DeckAttributes(BaseModel):
    model_config = ConfigDict(extra="allow")

    cards: list[CardRef] = Field(default_factory=list)


class Deck(BaseModel):
    """Named grouping of cards with explicit membership."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1, description="Server-assigned deck id.")
    tags: list[Tag] = Field(default_factory=list)
    attributes: DeckAttributes = Field(default_factory=DeckAttributes)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "Deck":
        attributes = raw.get("attributes") if isinstance(raw.get("attributes"), dict) else {}
        cards = attributes.get("cards") or raw.get("cards") or []
        return cls.model_validate(
            {
                **raw,
                "tags": raw.get("tags") or [],
                "attributes": {**attributes, "cards": cards},
            }
        )

    @property
    def card_ids(self) -> list[str]:
        return [ref.id for ref in self.attributes.cards]


class TokenResponse(BaseModel):
    """Body of a successful `/oauth/token` exchange."""

    model_config = ConfigDict(extra="allow")

    access_token: str = Field(..., min_length=1)
    token_type: str | None = None
    expires_in: int | None = None


@dataclass(frozen=True)
class ZoneContext:
    """Zone id, bearer token and base URL used together on every views call.

    A token is only valid for the zone it was issued for, so the two travel
    as one value and there is no API taking a bare token.
    """

    zone_id: str
    token: str
    base_url: str

    @property
    def cards_url(self) -> str:
        return f"{self.base_url}/api/cards"

    @property
    def decks_url(self) -> str:
        return f"{self.base_url}/api/decks"


@dataclass(frozen=True)
class ViewsResponse:
    body: Any
    headers: dict[str, str] = field(default_factory=dict)

