"""Tests for the UAA token exchange."""

import httpx
import pytest

from adapters.uaa_client import GRANT_BODY, request_token
from core.errors import AuthenticationError
from conftest import DEST_UAA, ORIGIN_CREDS, ORIGIN_UAA


class TestRequestToken:
    @pytest.mark.asyncio
    async def test_returns_token_on_200(self, http, server):
        token = await request_token(http, ORIGIN_UAA, ORIGIN_CREDS)

        assert token.access_token == "token-origin"
        assert token.expires_in == 3600

    @pytest.mark.asyncio
    async def test_sends_client_credentials_grant(self, http, server):
        await request_token(http, ORIGIN_UAA + "/", ORIGIN_CREDS)

        (req,) = server.requests
        assert req.method == "POST"
        assert req.path == "/oauth/token"
        assert req.body == GRANT_BODY == "grant_type=client_credentials&response_type=token"

    @pytest.mark.asyncio
    async def test_401_raises_with_status(self, http):
        # Origin credentials against the destination UAA.
        with pytest.raises(AuthenticationError) as excinfo:
            await request_token(http, DEST_UAA, ORIGIN_CREDS)

        assert excinfo.value.status_code == 401
        assert "401" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_non_200_success_status_is_still_a_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(201, json={"access_token": "x"}))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(AuthenticationError) as excinfo:
                await request_token(client, ORIGIN_UAA, ORIGIN_CREDS)

        assert excinfo.value.status_code == 201

    @pytest.mark.asyncio
    async def test_transport_error_reports_unknown_status(self):
        def boom(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(boom)) as client:
            with pytest.raises(AuthenticationError) as excinfo:
                await request_token(client, ORIGIN_UAA, ORIGIN_CREDS)

        assert excinfo.value.status_code == "unknown"
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_body_without_access_token_is_rejected(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"token_type": "bearer"}))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(AuthenticationError):
                await request_token(client, ORIGIN_UAA, ORIGIN_CREDS)
