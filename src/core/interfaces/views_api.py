"""Views API contract.

Why Protocol:
- Defines a structural contract (duck typing) without rigid inheritance.
- The resource migrator depends on it, not on httpx, so tests can swap in a
  recording stub.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from core.domain.models import ViewsResponse, ZoneContext


@runtime_checkable
class ViewsApi(Protocol):
    """Minimal contract for a zone-scoped views client.

    Design rules:
    - `call` is async because it always does network I/O.
    - Any non-2xx outcome raises `core.errors.RequestError`; a returned value
      always means success.
    """

    async def call(
        self,
        url: str,
        zone: ZoneContext,
        method: str = "GET",
        body: Any = None,
        params: Mapping[str, str] | None = None,
    ) -> ViewsResponse:
        """Issue one request scoped to `zone` and return the decoded response."""

        ...
