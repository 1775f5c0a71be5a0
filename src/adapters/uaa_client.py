"""UAA token exchange (client-credentials grant).

Notes:
- `credentials` is already base64 encoded (`client:secret`); it is sent as-is.
- Only HTTP 200 is a success. No retry: a failed exchange aborts the run.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from core.domain.models import TokenResponse
from core.errors import AuthenticationError

logger = logging.getLogger(__name__)

GRANT_BODY = "grant_type=client_credentials&response_type=token"


async def request_token(
    client: httpx.AsyncClient,
    auth_url: str,
    credentials: str,
) -> TokenResponse:
    url = f"{auth_url.rstrip('/')}/oauth/token"
    headers = {
        "Authorization": f"Basic {credentials}",
        "Content-Type": "application/x-www-form-urlencoded",
    }

    try:
        response = await client.post(url, headers=headers, content=GRANT_BODY)
    except httpx.HTTPError as exc:
        logger.debug("Token request to %s failed in transport: %s", url, exc)
        raise AuthenticationError("unknown", auth_url=auth_url) from exc

    if response.status_code != 200:
        raise AuthenticationError(response.status_code, auth_url=auth_url)

    try:
        token = TokenResponse.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise AuthenticationError(response.status_code, auth_url=auth_url) from exc

    logger.debug("Obtained %s token from %s", token.token_type or "bearer", auth_url)
    return token
