"""
Resource transports.

A fetcher is an async callable taking a locator and returning the resource
payload: Python source text, or a callable that receives the boot engine.
Every failure surfaces as ResourceFetchError.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import unquote, urlparse

import httpx

from .config import BootConfig
from .exceptions import ResourceFetchError


class FileFetcher:
    """Read resources from the local filesystem (plain paths or file:// URLs)."""

    def __init__(self, base: Optional[str] = None, encoding: str = "utf-8") -> None:
        self.base = Path(base) if base else None
        self.encoding = encoding

    def _path(self, locator: str) -> Path:
        if locator.startswith("file://"):
            return Path(unquote(urlparse(locator).path))
        path = Path(locator)
        if self.base is not None and not path.is_absolute():
            path = self.base / path
        return path

    async def __call__(self, locator: str) -> str:
        path = self._path(locator)
        try:
            return await asyncio.to_thread(path.read_text, self.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise ResourceFetchError(locator, str(exc)) from exc


class HttpFetcher:
    """Fetch resources over HTTP(S) with a shared httpx.AsyncClient."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0) -> None:
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def __call__(self, locator: str) -> str:
        try:
            response = await self.client.get(locator)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ResourceFetchError(locator, str(exc)) from exc
        return response.text

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


class MemoryFetcher:
    """
    Serve resources from a mapping of locator to payload.

    Useful for embedding and tests. A `delays` mapping postpones individual
    completions so arrival order can be controlled.
    """

    def __init__(
        self,
        resources: Mapping[str, Any],
        delays: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.resources: Dict[str, Any] = dict(resources)
        self.delays: Dict[str, float] = dict(delays or {})
        self.fetched: List[str] = []

    async def __call__(self, locator: str) -> Any:
        self.fetched.append(locator)
        delay = self.delays.get(locator)
        if delay:
            await asyncio.sleep(delay)
        if locator not in self.resources:
            raise ResourceFetchError(locator, "not found")
        return self.resources[locator]


def make_fetcher(config: BootConfig) -> Callable[[str], Any]:
    """Choose a transport from the deploy location."""
    if config.site.deploy.startswith(("http://", "https://")):
        return HttpFetcher()
    return FileFetcher()
