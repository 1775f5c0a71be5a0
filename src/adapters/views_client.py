"""Zone-scoped client for the views service.

Responsibility:
- Attach `Predix-Zone-Id` and the bearer token of the zone to every request.
- Serialize JSON bodies and decode JSON responses.
- Turn every non-2xx answer (or transport failure) into a `RequestError` with
  the full request/response context.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from core.domain.models import ViewsResponse, ZoneContext
from core.errors import RequestError
from core.interfaces.views_api import ViewsApi

logger = logging.getLogger(__name__)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ViewsClient(ViewsApi):
    """Implements `ViewsApi` on top of a shared `httpx.AsyncClient`."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def call(
        self,
        url: str,
        zone: ZoneContext,
        method: str = "GET",
        body: Any = None,
        params: Mapping[str, str] | None = None,
    ) -> ViewsResponse:
        method = method.upper()
        headers = {
            "Predix-Zone-Id": zone.zone_id,
            "Authorization": f"Bearer {zone.token}",
        }

        logger.debug("%s %s (zone %s)", method, url, zone.zone_id)
        try:
            response = await self._http.request(
                method,
                url,
                headers=headers,
                params=params,
                json=body,
            )
        except httpx.HTTPError as exc:
            raise RequestError(
                url=url,
                method=method,
                zone_id=zone.zone_id,
                body=body,
            ) from exc

        decoded = _decode_body(response)
        if not response.is_success:
            raise RequestError(
                url=url,
                method=method,
                zone_id=zone.zone_id,
                body=body,
                status_code=response.status_code,
                response_body=decoded,
            )

        return ViewsResponse(body=decoded, headers=dict(response.headers))
