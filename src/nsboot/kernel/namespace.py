"""
Namespace Tree: dotted-path addressing for resolved declarations.

Values live in a flat mapping keyed by dotted path. Nothing here mutates a
shared global object graph; `materialize()` builds a nested view on demand
for code that wants attribute access (`root.app.views.Main`).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import SimpleNamespace
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


class Namespace(SimpleNamespace):
    """Empty container written for a path segment that has no value yet."""


def split_path(path: str) -> List[str]:
    return path.split(".")


def parent_chain(path: str) -> List[str]:
    """Every ancestor path of `path`, outermost first."""
    segments = split_path(path)
    return [".".join(segments[:index]) for index in range(1, len(segments))]


def _child(container: Any, segment: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(segment)
    return getattr(container, segment, None)


class NamespaceTree:
    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}

    def __contains__(self, path: str) -> bool:
        return self.has(path)

    def __len__(self) -> int:
        return len(self._values)

    def paths(self) -> Iterator[str]:
        return iter(sorted(self._values))

    def get(self, path: Optional[str]) -> Any:
        """
        Return the value at `path`, or None.

        Exact paths win. Otherwise the lookup starts at the longest stored
        ancestor and walks the remaining segments through attributes or
        mapping keys, so members of a stored object are addressable too.
        """
        if not path:
            return None
        if path in self._values:
            return self._values[path]

        segments = split_path(path)
        for cut in range(len(segments) - 1, 0, -1):
            prefix = ".".join(segments[:cut])
            if prefix not in self._values:
                continue
            current = self._values[prefix]
            for segment in segments[cut:]:
                if current is None:
                    return None
                current = _child(current, segment)
            return current
        return None

    def has(self, path: Optional[str]) -> bool:
        return self.get(path) is not None

    def set(self, path: str, value: Any) -> Any:
        """Store `value` at `path`, creating placeholders for missing ancestors."""
        for ancestor in parent_chain(path):
            if not self.has(ancestor):
                self._values[ancestor] = Namespace()
        self._values[path] = value
        return value

    def ensure(self, path: str) -> Any:
        """Make sure `path` and all its ancestors hold a value."""
        if not self.has(path):
            self.set(path, Namespace())
        return self.get(path)

    def materialize(self) -> Namespace:
        """
        Build a nested object graph from the flat mapping.

        Children are attached to their parent value as attributes (or keys,
        for mapping values). Parents that refuse new attributes are skipped
        and the path stays reachable through `get`.
        """
        root = Namespace()
        by_path: Dict[str, Any] = {}
        for path in sorted(self._values, key=lambda p: p.count(".")):
            value = self._values[path]
            by_path[path] = value
            head, _, leaf = path.rpartition(".")
            parent = by_path.get(head) if head else root
            if parent is None:
                parent = self.get(head)
            try:
                if isinstance(parent, dict):
                    parent[leaf] = value
                else:
                    setattr(parent, leaf, value)
            except (AttributeError, TypeError):
                logger.debug("Cannot attach '%s' to its parent %r", path, type(parent).__name__)
        return root
