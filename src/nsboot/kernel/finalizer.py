"""
Finalizer: the one-way boot sequence run when the readiness gate trips.

    force placeholders ─> priority definitions ─> diagnostics ─> entry point
                                                                  │
                                              finished observers <┘
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ..observers import ObserverList
from ..timeline import Timeline
from .registry import DeclarationRegistry

logger = logging.getLogger(__name__)

EntryResolver = Callable[[], Optional[Callable[[], Any]]]


class Finalizer:
    def __init__(
        self,
        registry: DeclarationRegistry,
        resolve_entry: EntryResolver,
        observers: ObserverList,
        timeline: Optional[Timeline] = None,
        catch_exceptions: bool = True,
        detect_cycles: bool = False,
        verbose: bool = False,
    ) -> None:
        self._registry = registry
        self._resolve_entry = resolve_entry
        self._observers = observers
        self._timeline = timeline
        self.catch_exceptions = catch_exceptions
        self.detect_cycles = detect_cycles
        self._verbose = verbose
        self._ran = False
        self.finished = False
        self.entry_calls = 0

    def _mark(self, title: str, indent: int = 0) -> None:
        if self._timeline is not None:
            self._timeline.event(title, indent)

    def run(self) -> bool:
        """Run the boot sequence. Only the first call does anything."""
        if self._ran:
            return False
        self._ran = True

        if self._verbose:
            logger.info("Running module initialization code.")
        self.force_placeholders()
        self.run_priorities()
        self.report_unresolved()
        self.invoke_entry()
        return True

    def force_placeholders(self) -> int:
        if self.detect_cycles:
            for cycle in self._registry.find_cycles():
                logger.warning("Dependency cycle among pending declarations: %s", " -> ".join(cycle))
        self._mark("Create assumed definitions", 1)
        return self._registry.force_pending_definitions()

    def run_priorities(self) -> int:
        return self._registry.run_priority_definitions()

    def report_unresolved(self) -> int:
        unresolved = self._registry.unresolved()
        for record, missing in unresolved:
            logger.error(
                "The %s '%s' failed to process at startup. Missing dependency '%s'.",
                record.kind.value,
                record.name,
                missing,
            )
        return len(unresolved)

    def invoke_entry(self) -> None:
        self._mark("Initialize application", 0)
        if self._verbose:
            logger.info("Starting application.")
        if self.catch_exceptions:
            try:
                self._call_entry()
            except Exception:
                logger.exception("The application entry point raised an exception.")
        else:
            self._call_entry()
        self.finished = True
        self._observers.fire()

    def _call_entry(self) -> None:
        entry = self._resolve_entry()
        if entry is None:
            logger.error("No application entry point is defined.")
            return
        if not callable(entry):
            logger.error("The application entry point %r is not callable.", entry)
            return
        self.entry_calls += 1
        entry()
