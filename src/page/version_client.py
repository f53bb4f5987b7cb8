# src/page/version_client.py — v1
"""Fetches the deployed VersionDescriptor with caching disabled."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import httpx

from staleguard.core.errors import VersionCheckError
from staleguard.core.models import VersionDescriptor

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class VersionClient:
    """Reads the version endpoint of an origin.

    Every failure (timeout, HTTP error status, malformed JSON, missing
    ``version`` field) is logged and reported as None: a failed check means
    "no update available", never a reset.
    """

    def __init__(
        self,
        origin: str,
        endpoint: str = "/version.json",
        timeout_s: float = 5.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.url = origin.rstrip("/") + endpoint
        self._timeout_s = timeout_s
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self._clock = clock

    async def fetch(self) -> VersionDescriptor | None:
        try:
            return await self.fetch_or_raise()
        except VersionCheckError as e:
            logger.warning("Update check failed: %s", e)
            return None

    async def fetch_or_raise(self) -> VersionDescriptor:
        """Fetch the descriptor.

        Raises:
            VersionCheckError: On any network, status or parse failure.
        """
        try:
            response = await self._client.get(
                self.url,
                params={"t": int(self._clock() * 1000)},
                headers=NO_CACHE_HEADERS,
                timeout=self._timeout_s,
            )
            response.raise_for_status()
            return VersionDescriptor.model_validate(response.json())
        except httpx.HTTPError as e:
            raise VersionCheckError(f"{self.url}: {e}") from e
        except ValueError as e:
            raise VersionCheckError(f"{self.url}: invalid descriptor: {e}") from e

    async def aclose(self) -> None:
        """Close the HTTP client, unless it was passed in by the caller."""
        if self._owns_client:
            await self._client.aclose()
