# src/worker/network.py — v1
"""Network access for the worker: httpx-backed fetch with a bounded timeout."""

from __future__ import annotations

import logging

import httpx

from staleguard.core.errors import NetworkError
from staleguard.core.models import FetchRequest, ResponseSnapshot, ResponseType

logger = logging.getLogger(__name__)


class Fetcher:
    """Issues FetchRequests over HTTP and captures ResponseSnapshots.

    Args:
        origin: Origin the worker is scoped to; decides the response type.
        client: Shared httpx.AsyncClient (tests pass one built on a
            MockTransport).
    """

    def __init__(self, origin: str, client: httpx.AsyncClient | None = None) -> None:
        self._origin = origin.rstrip("/").lower()
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self.calls = 0

    async def fetch(
        self, request: FetchRequest, timeout: float | None = None
    ) -> ResponseSnapshot:
        """Fetch over the network.

        Raises:
            NetworkError: On connection failure or timeout.
        """
        self.calls += 1
        try:
            response = await self._client.request(
                request.method,
                request.url,
                headers=request.headers,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"network timeout for {request.url}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"fetch failed for {request.url}: {e}") from e

        return ResponseSnapshot(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            body=response.content,
            type=self._response_type(request),
            url=str(response.url),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _response_type(self, request: FetchRequest) -> ResponseType:
        if request.origin == self._origin:
            return "basic"
        if request.mode == "no-cors":
            return "opaque"
        return "cors"
