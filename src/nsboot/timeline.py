"""
Startup timeline: a fire-and-forget record of boot milestones.

Observers receive each TimingEvent as it is recorded, or None when the
timeline is cleared.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Optional

from .observers import Observer, ObserverList


@dataclass(frozen=True)
class TimingEvent:
    title: str
    indent: int
    at: float


class Timeline:
    def __init__(self) -> None:
        self._events: List[TimingEvent] = []
        self._observers = ObserverList("timeline")
        self._origin = time.perf_counter()

    @property
    def events(self) -> List[TimingEvent]:
        return list(self._events)

    def titles(self) -> List[str]:
        return [event.title for event in self._events]

    def event(self, title: str, indent: int = 0) -> TimingEvent:
        entry = TimingEvent(title=title, indent=indent, at=time.perf_counter() - self._origin)
        self._events.append(entry)
        self._observers.fire(entry)
        return entry

    def elapsed(self, title: str) -> Optional[float]:
        for entry in self._events:
            if entry.title == title:
                return entry.at
        return None

    def clear(self) -> None:
        self._events.clear()
        self._origin = time.perf_counter()
        self._observers.fire(None)

    def notify(self, observer: Observer) -> None:
        self._observers.add(observer)

    def notify_clear(self, observer: Observer) -> None:
        self._observers.remove(observer)
