from __future__ import annotations

import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

Observer = Callable[..., Any]


class ObserverList:
    """Ordered callbacks, deduplicated by identity."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._observers: List[Observer] = []

    def __len__(self) -> int:
        return len(self._observers)

    def add(self, observer: Observer) -> None:
        if any(existing is observer for existing in self._observers):
            return
        self._observers.append(observer)

    def remove(self, observer: Observer) -> None:
        self._observers = [existing for existing in self._observers if existing is not observer]

    def fire(self, *args: Any) -> None:
        for observer in list(self._observers):
            try:
                observer(*args)
            except Exception:
                logger.exception("Observer of '%s' failed", self.name)
