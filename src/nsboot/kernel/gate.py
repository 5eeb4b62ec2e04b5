"""
Readiness Gate: start the application only when everything is ready.

Resource settling, markup parsing and page loading are independent signals
from the hosting environment. Each flag is write-once; the gate trips the
first time all three are true and never again.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ReadinessGate:
    def __init__(self, on_ready: Callable[[], None], verbose: bool = False) -> None:
        self._on_ready = on_ready
        self._verbose = verbose
        self.resources_settled = False
        self.markup_parsed = False
        self.page_loaded = False
        self._tripped = False

    @property
    def ready(self) -> bool:
        return self.resources_settled and self.markup_parsed and self.page_loaded

    @property
    def tripped(self) -> bool:
        return self._tripped

    def mark_resources_settled(self) -> None:
        self.resources_settled = True
        self.check()

    def mark_markup_parsed(self) -> None:
        self.markup_parsed = True
        self.check()

    def mark_page_loaded(self) -> None:
        self.page_loaded = True
        self.check()

    def check(self) -> Optional[bool]:
        """Trip the gate if every flag is set. Returns True on the tripping call."""
        if self._tripped:
            return None
        if self._verbose:
            logger.info(
                "Resources %sready, markup %sready, page %sready.",
                "" if self.resources_settled else "not ",
                "" if self.markup_parsed else "not ",
                "" if self.page_loaded else "not ",
            )
        if not self.ready:
            return False
        self._tripped = True
        self._on_ready()
        return True
