# tests/unit/worker/test_unit_network.py — v1
"""Tests for worker/network.py — httpx-backed Fetcher."""

from __future__ import annotations

import httpx
import pytest

from staleguard.core.errors import NetworkError
from staleguard.core.models import FetchRequest
from staleguard.worker.network import Fetcher


class TestFetcher:
    @pytest.mark.asyncio
    async def test_same_origin_is_basic(self, fetcher, asset_request):
        response = await fetcher.fetch(asset_request)
        assert response.status == 200
        assert response.type == "basic"
        assert response.body == b"console.log('v1')"
        assert fetcher.calls == 1

    @pytest.mark.asyncio
    async def test_cross_origin_types(self, fetcher):
        cors = await fetcher.fetch(FetchRequest(url="https://cdn.test/a.js"))
        opaque = await fetcher.fetch(FetchRequest(url="https://cdn.test/a.js", mode="no-cors"))
        assert cors.type == "cors"
        assert opaque.type == "opaque"

    @pytest.mark.asyncio
    async def test_headers_forwarded(self, fetcher, site, asset_request):
        await fetcher.fetch(asset_request.model_copy(update={"headers": {"X-Probe": "1"}}))
        assert site.requests[-1].headers["x-probe"] == "1"

    @pytest.mark.asyncio
    async def test_connection_error(self, fetcher, site, asset_request):
        site.offline = True
        with pytest.raises(NetworkError, match="fetch failed"):
            await fetcher.fetch(asset_request)

    @pytest.mark.asyncio
    async def test_timeout(self, origin):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        fetcher = Fetcher(origin, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        with pytest.raises(NetworkError, match="timeout"):
            await fetcher.fetch(FetchRequest(url=f"{origin}/slow"), timeout=0.1)
        await fetcher.aclose()

    @pytest.mark.asyncio
    async def test_error_status_is_not_raised(self, fetcher, origin):
        response = await fetcher.fetch(FetchRequest(url=f"{origin}/nope"))
        assert response.status == 404
        assert response.ok is False
