"""
Resource Loader: request each code resource once and count what is in flight.

Two drivers are supported:

    fetcher given ──> request() schedules an asyncio task that awaits the
                      fetch and calls complete(); a loop timer calls expire()
    no fetcher    ──> the host delivers complete() / expire() itself

The pending counter starts at one so the loader cannot settle before the
startup resource has even been requested. Only complete() decrements it, and
only after the resource's code and callback have run, so nested requests made
by freshly executed code are counted before the decrement is.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from ..exceptions import ResourceFetchError
from .schema import ResourceRequest, ResourceStatus

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[Any]]
Locate = Callable[[str], str]
Execute = Callable[[ResourceRequest, Any], None]


class ResourceLoader:
    def __init__(
        self,
        locate: Locate,
        execute: Execute,
        on_loaded: Callable[[], Any],
        on_settled: Callable[[], None],
        fetcher: Optional[Fetcher] = None,
        timeout: float = 7.0,
        enabled: bool = True,
        verbose: bool = False,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        self._locate = locate
        self._execute = execute
        self._on_loaded = on_loaded
        self._on_settled = on_settled
        self._fetcher = fetcher
        self.timeout = timeout
        self.enabled = enabled
        self._verbose = verbose
        self._on_error = on_error
        self._requests: Dict[str, ResourceRequest] = {}
        self._pending = 1
        self.settled_count = 0

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def fetcher(self) -> Optional[Fetcher]:
        return self._fetcher

    @property
    def count(self) -> int:
        return len(self._requests)

    @property
    def requests(self) -> Dict[str, ResourceRequest]:
        return dict(self._requests)

    def get(self, resource_id: str) -> Optional[ResourceRequest]:
        return self._requests.get(resource_id)

    def start(self, startup_id: str) -> Optional[ResourceRequest]:
        """Drop the startup bias and request the startup resource."""
        # No settle check here: the request below raises the count right back.
        self._pending -= 1
        return self.request(startup_id)

    def request(
        self,
        resource_id: str,
        callback: Optional[Callable[[], Any]] = None,
    ) -> Optional[ResourceRequest]:
        if not self.enabled:
            return None

        existing = self._requests.get(resource_id)
        if existing is not None:
            if self._verbose:
                logger.info("Redundant import of '%s' avoided.", resource_id)
            return existing

        loop = None
        if self._fetcher is not None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.error(
                    "Cannot import '%s': fetching needs a running event loop (use BootEngine.run()).",
                    resource_id,
                )
                return None

        request = ResourceRequest(
            id=resource_id,
            locator=self._locate(resource_id),
            callback=callback or self._on_loaded,
            requested_at=time.monotonic(),
        )
        self._requests[resource_id] = request
        self._pending += 1
        if self._verbose:
            logger.info("Importing resource: %s (%s)", resource_id, request.locator)

        if loop is not None:
            request.timer = loop.call_later(self.timeout, self.expire, resource_id)
            request.task = loop.create_task(self._fetch(request))
        return request

    async def _fetch(self, request: ResourceRequest) -> None:
        assert self._fetcher is not None
        # A failed fetch leaves the request open; its timer reports the failure.
        try:
            payload = await self._fetcher(request.locator)
        except ResourceFetchError as exc:
            logger.error("Fetch of '%s' failed: %s", request.id, exc)
            return
        except Exception:
            logger.exception("Fetch of '%s' failed", request.id)
            return

        try:
            self.complete(request.id, payload)
        except Exception as exc:
            # Only an entry point running without its exception boundary gets here.
            if self._on_error is None:
                logger.exception("Completing '%s' raised", request.id)
            else:
                self._on_error(exc)

    def complete(self, resource_id: str, payload: Any = None) -> bool:
        """
        Record that a resource finished loading and run what it carried.

        Returns:
            True when the completion was applied.
        """
        request = self._requests.get(resource_id)
        if request is None:
            logger.warning("Completion for unrequested resource '%s' ignored.", resource_id)
            return False
        if request.status == ResourceStatus.LOADED:
            return False
        if request.status == ResourceStatus.TIMED_OUT:
            logger.warning("Resource '%s' loaded after it timed out.", resource_id)

        self._cancel_timer(request)
        request.status = ResourceStatus.LOADED
        request.completed_at = time.monotonic()
        if self._verbose:
            logger.info("Import complete: %s", resource_id)

        try:
            self._execute(request, payload)
        except Exception:
            logger.exception("Resource '%s' raised while executing", resource_id)
        if request.callback is not None:
            try:
                request.callback()
            except Exception:
                logger.exception("Completion callback of '%s' raised", resource_id)

        self._pending -= 1
        if self._pending == 0:
            self.settled_count += 1
            if self._verbose:
                logger.info("%d resource(s) loaded.", len(self._requests))
            self._on_settled()
        return True

    def expire(self, resource_id: str) -> bool:
        """
        Give up waiting for a resource.

        The pending count is left untouched: a resource that never arrives
        keeps the loader from settling.
        """
        request = self._requests.get(resource_id)
        if request is None or request.status != ResourceStatus.REQUESTED:
            return False
        self._cancel_timer(request)
        request.status = ResourceStatus.TIMED_OUT
        logger.error("Resource import failed (timed out): %s (%s)", resource_id, request.locator)
        return True

    def _cancel_timer(self, request: ResourceRequest) -> None:
        if request.timer is not None:
            request.timer.cancel()
            request.timer = None
