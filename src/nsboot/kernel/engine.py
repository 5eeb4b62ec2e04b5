"""
BootEngine: the single context object behind an application boot.

Architecture:
    resource code ──boot.define()/register_class()/request()──┐
                                                              v
    ResourceLoader ──complete()──> DeclarationRegistry.process_deferred()
          │ pending == 0
          v
    ReadinessGate (resources ∧ markup ∧ page) ──trip──> Finalizer ──> entry point

Every piece of state (namespace tree, deferred queues, pending counter,
readiness flags) is owned by one engine, so independent engines can boot
side by side. Resource code sees its engine as the global `boot`.

Example:
    engine = BootEngine(config, fetcher=FileFetcher())
    await engine.run()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from ..config import BootConfig
from ..exceptions import ResourceFetchError
from ..locator import locate
from ..observers import Observer, ObserverList
from ..timeline import Timeline
from .finalizer import Finalizer
from .gate import ReadinessGate
from .loader import Fetcher, ResourceLoader
from .namespace import NamespaceTree
from .registry import DeclarationRegistry, RegistryRecord
from .schema import ResourceRequest

logger = logging.getLogger(__name__)


class BootEngine:
    """
    Owns the registry, loader, readiness gate and finalizer of one boot.

    Args:
        config: Validated boot configuration.
        fetcher: Async transport for resources. Without one the host drives
            loads through `loader.complete()` and `loader.expire()`.
        entry: Application entry point. Defaults to the callable found at
            `config.entry_point` in the namespace tree.
        timeline: Optional timing sink.
    """

    def __init__(
        self,
        config: BootConfig,
        fetcher: Optional[Fetcher] = None,
        entry: Optional[Callable[[], Any]] = None,
        timeline: Optional[Timeline] = None,
    ) -> None:
        self.config = config
        self.timeline = timeline
        self._entry = entry
        self._booted = False
        self._waiter: Optional[asyncio.Future] = None
        self.modules: Dict[str, Dict[str, Any]] = {}
        self._finished_observers = ObserverList("finished")
        self._settled_observers = ObserverList("resources settled")

        debug = config.debug
        self.tree = NamespaceTree()
        self.registry = DeclarationRegistry(
            self.tree,
            check_args=debug.args_check,
            check_interfaces=debug.interfaces_check,
        )
        self.loader = ResourceLoader(
            locate=self.locate,
            execute=self._execute,
            on_loaded=self.registry.process_deferred,
            on_settled=self._resources_settled,
            fetcher=fetcher,
            timeout=config.resource_timeout,
            enabled=config.loader.imports,
            verbose=debug.scripts,
            on_error=self._boot_failed,
        )
        self.finalizer = Finalizer(
            self.registry,
            resolve_entry=self._resolve_entry,
            observers=self._finished_observers,
            timeline=timeline,
            catch_exceptions=config.catch_entry_exceptions,
            detect_cycles=debug.detect_cycles,
            verbose=debug.startup,
        )
        self.gate = ReadinessGate(self.finalizer.run, verbose=debug.startup)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def register_class(
        self,
        name: str,
        definition: Optional[Dict[str, Any]] = None,
        extends: Optional[str] = None,
        implements: Union[str, List[str], None] = None,
    ) -> Optional[RegistryRecord]:
        return self.registry.register_class(name, definition, extends=extends, implements=implements)

    def register_interface(
        self,
        name: str,
        definition: Optional[Dict[str, Any]] = None,
        extends: Optional[str] = None,
    ) -> Optional[RegistryRecord]:
        return self.registry.register_interface(name, definition, extends=extends)

    def define(
        self,
        name: str,
        definition: Any = None,
        priority: Optional[float] = None,
    ) -> Optional[RegistryRecord]:
        return self.registry.define(name, definition, priority=priority)

    def get(self, path: str) -> Any:
        return self.tree.get(path)

    def singleton(self, class_path: str, *args: Any) -> Any:
        return self.registry.singleton(class_path, *args)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def locate(self, resource_id: str) -> str:
        return locate(resource_id, self.config)

    def request(
        self,
        resource_id: str,
        callback: Optional[Callable[[], Any]] = None,
    ) -> Optional[ResourceRequest]:
        return self.loader.request(resource_id, callback=callback)

    def _execute(self, request: ResourceRequest, payload: Any) -> None:
        """Run what a resource carried: Python source, or a callable taking the engine."""
        if payload is None:
            return
        if isinstance(payload, (str, bytes)):
            code = compile(payload, request.locator, "exec")
            module_globals = {"__name__": request.id, "__file__": request.locator, "boot": self}
            self.modules[request.id] = module_globals
            exec(code, module_globals)
        elif callable(payload):
            payload(self)
        else:
            logger.error("Resource '%s' delivered an unsupported payload %r", request.id, type(payload).__name__)

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def _resources_settled(self) -> None:
        if self.timeline is not None:
            self.timeline.event("Resources settled", 1)
        self._settled_observers.fire()
        self.gate.mark_resources_settled()

    def mark_markup_parsed(self) -> None:
        if self.timeline is not None:
            self.timeline.event("Markup parsed", 1)
        self.gate.mark_markup_parsed()

    def mark_page_loaded(self) -> None:
        if self.timeline is not None:
            self.timeline.event("Page loaded", 1)
        self.gate.mark_page_loaded()

    def notify(self, observer: Observer) -> None:
        self._finished_observers.add(observer)

    def notify_clear(self, observer: Observer) -> None:
        self._finished_observers.remove(observer)

    def notify_settled(self, observer: Observer) -> None:
        self._settled_observers.add(observer)

    def notify_settled_clear(self, observer: Observer) -> None:
        self._settled_observers.remove(observer)

    def finished(self) -> bool:
        return self.finalizer.finished

    def _boot_failed(self, exc: BaseException) -> None:
        """Hand an error raised while completing a fetched resource to run()."""
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_exception(exc)
        else:
            logger.error("Unhandled error during startup", exc_info=exc)

    def _resolve_entry(self) -> Optional[Callable[[], Any]]:
        if self._entry is not None:
            return self._entry
        entry = self.tree.get(self.config.entry_point)
        if entry is None:
            # a top-level function of the startup resource, like main() in main.py
            startup = self.modules.get(self.config.startup_script, {})
            entry = startup.get(self.config.entry_point)
        return entry

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def boot(self) -> bool:
        """
        Start loading. Returns False if this engine was already booted.

        Readiness signals the configuration does not wait for are raised
        immediately; the rest arrive from the host. With a fetcher this must
        be called from a running event loop, as run() does; otherwise the
        startup request is refused and logged.
        """
        if self._booted:
            logger.warning("Boot requested twice; ignoring the second request.")
            return False
        self._booted = True

        if self.timeline is not None:
            self.timeline.event("Load script dependencies", 0)
        wait_for = self.config.loader.wait_for
        if not wait_for.markup:
            self.gate.mark_markup_parsed()
        if not wait_for.page:
            self.gate.mark_page_loaded()

        if not self.loader.enabled:
            if self.config.debug.startup:
                logger.info("Imports disabled; running module initialization code directly.")
            self._resources_settled()
            return True

        if self.timeline is not None:
            self.timeline.event("Load startup script and its dependencies", 1)
        self.loader.start(self.config.startup_script)
        return True

    async def load_libs(self, fetcher: Fetcher) -> bool:
        """Fetch and execute `loader.libs` one after another, before booting."""
        for index, lib in enumerate(self.config.loader.libs):
            if self.timeline is not None:
                self.timeline.event(lib, 1)
            request = ResourceRequest(id=f"lib{index}", locator=self.locate(lib))
            try:
                payload = await asyncio.wait_for(fetcher(request.locator), self.loader.timeout)
            except (ResourceFetchError, asyncio.TimeoutError) as exc:
                logger.error(
                    "The load of '%s' failed (%s). The system is unable to start the application.",
                    request.locator,
                    str(exc) or "timed out",
                )
                return False
            try:
                self._execute(request, payload)
            except Exception:
                logger.exception("Boot library '%s' raised while executing", lib)
                return False
            if self.config.debug.scripts:
                logger.info("Loaded boot library '%s'", lib)
        return True

    async def run(self, fetcher: Optional[Fetcher] = None, deadline: Optional[float] = None) -> bool:
        """
        Boot and wait until the application has started.

        Args:
            fetcher: Transport for `loader.libs`; defaults to the loader's.
            deadline: Seconds to wait for the finished event.

        Returns:
            True once finished, False if startup halted or the deadline passed.

        Raises:
            Whatever the entry point raised, when the exception boundary is
            lifted for local debugging.
        """
        loop = asyncio.get_running_loop()
        done: asyncio.Future = loop.create_future()

        def _finished() -> None:
            if not done.done():
                done.set_result(True)

        self.notify(_finished)
        self._waiter = done
        try:
            lib_fetcher = fetcher or self.loader.fetcher
            if self.config.loader.libs and self.config.loader.imports:
                if lib_fetcher is None:
                    logger.error("Boot libraries are configured but no fetcher is available.")
                    return False
                if self.timeline is not None:
                    self.timeline.event("Load frameworks / synchronous scripts", 0)
                if not await self.load_libs(lib_fetcher):
                    return False

            self.boot()
            try:
                await asyncio.wait_for(asyncio.shield(done), deadline)
            except asyncio.TimeoutError:
                logger.error(
                    "Application did not start within %.1fs (%d resource(s) pending).",
                    deadline,
                    self.loader.pending,
                )
                return False
            return True
        finally:
            self._waiter = None
            self.notify_clear(_finished)
