"""Shared fixtures: an in-memory views service + UAA behind `httpx.MockTransport`."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
import pytest_asyncio

from adapters.http_client import build_async_client
from core.config import MigrationConfig
from core.domain.models import ViewsResponse, ZoneContext
from core.errors import RequestError

ORIGIN_VIEWS = "https://origin.views.test"
DEST_VIEWS = "https://dest.views.test"
ORIGIN_UAA = "https://origin.uaa.test"
DEST_UAA = "https://dest.uaa.test"
ORIGIN_ZONE = "zone-origin"
DEST_ZONE = "zone-dest"
ORIGIN_CREDS = "b3JpZ2luOnNlY3JldA=="
DEST_CREDS = "ZGVzdDpzZWNyZXQ="


@dataclass
class FakeZone:
    zone_id: str
    token: str
    preserve_ids: bool = True
    cards: dict[str, dict[str, Any]] = field(default_factory=dict)
    decks: dict[str, dict[str, Any]] = field(default_factory=dict)
    next_id: int = 1000

    def collection(self, resource: str) -> dict[str, dict[str, Any]]:
        return self.cards if resource == "cards" else self.decks


@dataclass
class RecordedRequest:
    host: str
    method: str
    path: str
    params: dict[str, str]
    body: Any


class FakeViewsServer:
    """Minimal stand-in for two views instances and their UAAs.

    Every request is recorded in order in `requests`. `fail` maps
    `(host, method, path)` to a status code to force an error answer.
    """

    def __init__(self) -> None:
        self.zones: dict[str, FakeZone] = {
            "origin.views.test": FakeZone(zone_id=ORIGIN_ZONE, token="token-origin"),
            "dest.views.test": FakeZone(zone_id=DEST_ZONE, token="token-dest"),
        }
        self.uaa: dict[str, tuple[str, str]] = {
            "origin.uaa.test": (ORIGIN_CREDS, "token-origin"),
            "dest.uaa.test": (DEST_CREDS, "token-dest"),
        }
        self.requests: list[RecordedRequest] = []
        self.fail: dict[tuple[str, str, str], int] = {}

    @property
    def origin(self) -> FakeZone:
        return self.zones["origin.views.test"]

    @property
    def destination(self) -> FakeZone:
        return self.zones["dest.views.test"]

    def calls(self, host: str, method: str | None = None, suffix: str = "") -> list[RecordedRequest]:
        return [
            r
            for r in self.requests
            if r.host == host and (method is None or r.method == method) and r.path.endswith(suffix)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        body = json.loads(request.content) if request.content and host in self.zones else None
        self.requests.append(
            RecordedRequest(
                host=host,
                method=request.method,
                path=request.url.path,
                params=dict(request.url.params),
                body=body if host in self.zones else request.content.decode(),
            )
        )

        forced = self.fail.get((host, request.method, request.url.path))
        if forced:
            return httpx.Response(forced, json={"error": "forced"})

        if host in self.uaa:
            return self._token(request)
        return self._views(self.zones[host], request, body)

    def _token(self, request: httpx.Request) -> httpx.Response:
        creds, token = self.uaa[request.url.host]
        if request.url.path != "/oauth/token" or request.method != "POST":
            return httpx.Response(404)
        if request.headers.get("Authorization") != f"Basic {creds}":
            return httpx.Response(401, json={"error": "unauthorized"})
        return httpx.Response(200, json={"access_token": token, "token_type": "bearer", "expires_in": 3600})

    def _views(self, zone: FakeZone, request: httpx.Request, body: Any) -> httpx.Response:
        if request.headers.get("Predix-Zone-Id") != zone.zone_id:
            return httpx.Response(400, json={"error": "bad zone"})
        if request.headers.get("Authorization") != f"Bearer {zone.token}":
            return httpx.Response(401, json={"error": "bad token"})

        parts = request.url.path.strip("/").split("/")
        if len(parts) < 2 or parts[0] != "api" or parts[1] not in ("cards", "decks"):
            return httpx.Response(404)
        items = zone.collection(parts[1])
        method = request.method

        if len(parts) == 2 and method == "GET":
            return httpx.Response(200, json=[copy.deepcopy(i) for i in items.values()])
        if len(parts) == 2 and method == "POST":
            created = []
            for raw in body:
                item = copy.deepcopy(raw)
                if not zone.preserve_ids:
                    zone.next_id += 1
                    item["id"] = str(zone.next_id)
                item["tags"] = []
                if parts[1] == "decks":
                    item.setdefault("attributes", {})["cards"] = []
                    item.pop("cards", None)
                items[str(item["id"])] = item
                created.append(item)
            return httpx.Response(201, json=created)

        item = items.get(parts[2])
        if item is None:
            return httpx.Response(404, json={"error": "not found"})
        if len(parts) == 3 and method == "DELETE":
            del items[parts[2]]
            return httpx.Response(204)
        if parts[3:] == ["tags"] and method == "POST":
            item["tags"].extend(body)
            return httpx.Response(200, json=item["tags"])
        if parts[3:] == ["cards", "add"] and method == "POST":
            item["attributes"]["cards"] = [{"id": ident} for ident in body]
            return httpx.Response(200, json=item)
        return httpx.Response(405)


@pytest.fixture
def server() -> FakeViewsServer:
    return FakeViewsServer()


def make_config(**overrides: Any) -> MigrationConfig:
    values: dict[str, Any] = {
        "original_views_url": ORIGIN_VIEWS,
        "destination_views_url": DEST_VIEWS,
        "original_views_zone_id": ORIGIN_ZONE,
        "destination_views_zone_id": DEST_ZONE,
        "original_uaa_url": ORIGIN_UAA,
        "destination_uaa_url": DEST_UAA,
        "original_uaa_credentials": ORIGIN_CREDS,
        "destination_uaa_credentials": DEST_CREDS,
    }
    values.update(overrides)
    return MigrationConfig(**values)


@pytest.fixture
def config() -> MigrationConfig:
    return make_config()


@pytest_asyncio.fixture
async def http(server: FakeViewsServer, config: MigrationConfig):
    async with build_async_client(config, transport=httpx.MockTransport(server.handler)) as client:
        yield client


@pytest.fixture
def origin_zone() -> ZoneContext:
    return ZoneContext(zone_id=ORIGIN_ZONE, token="token-origin", base_url=ORIGIN_VIEWS)


@pytest.fixture
def dest_zone() -> ZoneContext:
    return ZoneContext(zone_id=DEST_ZONE, token="token-dest", base_url=DEST_VIEWS)


class RecordingViews:
    """`ViewsApi` stub that records calls and answers from a canned table."""

    def __init__(self, responses: dict[tuple[str, str], Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, str, Any, Any]] = []
        self.fail_urls: set[str] = set()

    async def call(self, url, zone, method="GET", body=None, params=None) -> ViewsResponse:
        self.calls.append((method, url, body, params))
        if url in self.fail_urls:
            raise RequestError(url=url, method=method, zone_id=zone.zone_id, body=body, status_code=500)
        return ViewsResponse(body=self.responses.get((method, url)))


@pytest.fixture
def views() -> RecordingViews:
    return RecordingViews()
