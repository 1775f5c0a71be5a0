"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts, headers and pool limits for both zones and both UAAs.
- Eases testing: callers accept any `httpx.AsyncClient`, so tests pass one
  backed by `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import MigrationConfig

USER_AGENT = "views-migrate/0.1"


def build_async_client(
    config: MigrationConfig | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` for a migration run.

    Bulk stages fan out one request per item, so with unbounded concurrency the
    pool must not cap the number of open connections either.
    """

    timeout = config.http_timeout_seconds if config else None
    max_concurrency = config.max_concurrency if config else None

    headers: dict[str, str] = {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)

    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        limits=httpx.Limits(max_connections=max_concurrency, max_keepalive_connections=None),
        headers=headers,
        transport=transport,
    )
