"""
Declaration Registry: dependency-driven resolution of classes, interfaces
and definitions.

Each namespace kind keeps its own deferred queue in registration order.
Every registration and every external trigger runs a composite pass: each
queue is scanned front to back, the first entry whose dependencies all
resolve is resolved, and the scan restarts from the top. Kinds are swept
again and again until none of them makes progress, which is the fixed point.

Resolving a definition can run arbitrary factory code that registers more
declarations. Such nested registrations only enqueue; the running pass picks
them up on its next sweep.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .. import oop
from ..args import validate_args
from .namespace import NamespaceTree, parent_chain
from .schema import (
    ClassDeclaration,
    DefinitionDeclaration,
    InterfaceDeclaration,
    RecordKind,
    RecordStatus,
)

logger = logging.getLogger(__name__)

Declaration = Union[ClassDeclaration, InterfaceDeclaration, DefinitionDeclaration]

# Interfaces first: a resolved interface is often what a pending class waits for.
PASS_ORDER = (RecordKind.INTERFACE, RecordKind.CLASS, RecordKind.DEFINITION)


@dataclass
class RegistryRecord:
    kind: RecordKind
    declaration: Declaration
    sequence: int
    status: RecordStatus = RecordStatus.PENDING
    value: Any = None
    resolution: Optional[int] = None  # position in the overall resolution order

    @property
    def name(self) -> str:
        return self.declaration.name

    @property
    def priority(self) -> Optional[float]:
        return getattr(self.declaration, "priority", None)

    def dependencies(self) -> List[str]:
        """Paths that must resolve before this record can."""
        deps = parent_chain(self.name)
        extends = getattr(self.declaration, "extends", None)
        if extends:
            deps.append(extends)
        if self.kind == RecordKind.CLASS:
            deps.extend(self.declaration.interface_paths())
        return deps


class DeclarationRegistry:
    def __init__(
        self,
        tree: Optional[NamespaceTree] = None,
        check_args: bool = True,
        check_interfaces: bool = True,
    ) -> None:
        self.tree = tree if tree is not None else NamespaceTree()
        self.check_args = check_args
        self.check_interfaces = check_interfaces
        self._queues: Dict[RecordKind, List[RegistryRecord]] = {kind: [] for kind in RecordKind}
        self._records: Dict[RecordKind, Dict[str, RegistryRecord]] = {kind: {} for kind in RecordKind}
        self._priority: List[RegistryRecord] = []
        self._sequence = count()
        self._resolutions = count()
        self._in_pass = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_class(
        self,
        name: str,
        definition: Optional[Dict[str, Any]] = None,
        extends: Optional[str] = None,
        implements: Union[str, List[str], None] = None,
    ) -> Optional[RegistryRecord]:
        declaration = validate_args(
            ClassDeclaration,
            {"name": name, "definition": definition, "extends": extends, "implements": implements},
            check=self.check_args,
        )
        leaf = str(declaration.name).rsplit(".", 1)[-1]
        if not leaf[:1].isupper():
            logger.error("Class '%s' should begin with an uppercase letter.", declaration.name)
        return self._register(RecordKind.CLASS, declaration)

    def register_interface(
        self,
        name: str,
        definition: Optional[Dict[str, Any]] = None,
        extends: Optional[str] = None,
    ) -> Optional[RegistryRecord]:
        declaration = validate_args(
            InterfaceDeclaration,
            {"name": name, "definition": definition, "extends": extends},
            check=self.check_args,
        )
        return self._register(RecordKind.INTERFACE, declaration)

    def define(
        self,
        name: str,
        definition: Any = None,
        priority: Optional[float] = None,
    ) -> Optional[RegistryRecord]:
        declaration = validate_args(
            DefinitionDeclaration,
            {"name": name, "definition": definition, "priority": priority},
            check=self.check_args,
        )
        return self._register(RecordKind.DEFINITION, declaration)

    def _register(self, kind: RecordKind, declaration: Declaration) -> Optional[RegistryRecord]:
        name = getattr(declaration, "name", None)
        if not isinstance(name, str) or not name:
            logger.error("Cannot register a %s without a name.", kind.value)
            return None

        previous = self._records[kind].get(name)
        if previous is not None:
            logger.warning("%s '%s' registered again; the later declaration wins.", kind.value.title(), name)
            if previous.status == RecordStatus.PENDING:
                self._queues[kind][:] = [r for r in self._queues[kind] if r is not previous]

        record = RegistryRecord(kind=kind, declaration=declaration, sequence=next(self._sequence))
        self._records[kind][name] = record
        self._queues[kind].append(record)
        self.process_deferred()
        return record

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def get(self, path: str) -> Any:
        return self.tree.get(path)

    def record(self, kind: RecordKind, name: str) -> Optional[RegistryRecord]:
        return self._records[kind].get(name)

    def pending(self, kind: RecordKind) -> List[RegistryRecord]:
        return list(self._queues[kind])

    def is_resolved(self, kind: RecordKind, name: str) -> bool:
        record = self._records[kind].get(name)
        return record is not None and record.status == RecordStatus.RESOLVED

    @property
    def priority_definitions(self) -> List[RegistryRecord]:
        return list(self._priority)

    def missing(self, record: RegistryRecord) -> Optional[str]:
        """First dependency of `record` with no value in the tree, if any."""
        for path in record.dependencies():
            if not self.tree.has(path):
                return path
        return None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def process_deferred(self) -> int:
        """
        Run the composite resolution pass to its fixed point.

        Returns:
            Number of records resolved. A nested call made while a pass is
            already running returns 0; the running pass absorbs its work.
        """
        if self._in_pass:
            return 0

        self._in_pass = True
        resolved = 0
        try:
            while True:
                progressed = sum(self._process_queue(kind) for kind in PASS_ORDER)
                if not progressed:
                    break
                resolved += progressed
        finally:
            self._in_pass = False
        return resolved

    def _process_queue(self, kind: RecordKind) -> int:
        queue = self._queues[kind]
        resolved = 0
        restart = True
        while restart:
            restart = False
            for record in queue:
                if self.missing(record) is None:
                    queue.remove(record)
                    self._resolve(record)
                    resolved += 1
                    restart = True
                    break
        return resolved

    def _resolve(self, record: RegistryRecord) -> None:
        try:
            if record.kind == RecordKind.CLASS:
                record.value = self._build_class(record.declaration)
            elif record.kind == RecordKind.INTERFACE:
                record.value = self._build_interface(record.declaration)
            else:
                record.value = self._apply_definition(record)
        except Exception:
            logger.exception("Failed to build %s '%s'", record.kind.value, record.name)
        record.status = RecordStatus.RESOLVED
        record.resolution = next(self._resolutions)
        logger.debug("Resolved %s '%s'", record.kind.value, record.name)

    def _build_class(self, declaration: ClassDeclaration) -> type:
        parent = self.tree.get(declaration.extends) if declaration.extends else None
        if declaration.extends and not oop.is_declared_class(parent):
            logger.error(
                "Class '%s' tries to extend a non-Class based object '%s'.",
                declaration.name,
                declaration.extends,
            )
        interfaces = [self.tree.get(path) for path in declaration.interface_paths()]
        cls = oop.build_class(
            declaration.name,
            declaration.definition,
            parent=parent if isinstance(parent, type) else None,
            interfaces=[i for i in interfaces if oop.is_interface(i)],
        )
        if self.check_interfaces:
            for problem in oop.conformance_problems(cls, interfaces):
                logger.error(problem)
        return self.tree.set(declaration.name, cls)

    def _build_interface(self, declaration: InterfaceDeclaration) -> type:
        parent = self.tree.get(declaration.extends) if declaration.extends else None
        if declaration.extends and not oop.is_interface(parent):
            logger.error(
                "Interface '%s' tries to extend a non-Interface based object '%s'.",
                declaration.name,
                declaration.extends,
            )
        interface = oop.build_interface(declaration.name, declaration.definition, parent=parent)
        return self.tree.set(declaration.name, interface)

    def _apply_definition(self, record: RegistryRecord) -> Any:
        declaration = record.declaration
        self.tree.ensure(declaration.name)
        payload = declaration.definition
        if payload is None:
            return self.tree.get(declaration.name)
        if record.priority:
            self._priority.append(record)
            return self.tree.get(declaration.name)
        return self._execute_definition(declaration.name, payload)

    def _execute_definition(self, name: str, payload: Any) -> Any:
        if callable(payload):
            try:
                result = payload()
            except Exception:
                logger.exception("Definition '%s' raised during initialization", name)
                result = None
            if result is not None:
                self.tree.set(name, result)
        else:
            self.tree.set(name, payload)
        return self.tree.get(name)

    # ------------------------------------------------------------------
    # Finalization support
    # ------------------------------------------------------------------

    def force_pending_definitions(self) -> int:
        """
        Resolve every pending definition against empty placeholders.

        Each segment of the definition's own path is materialized as an
        empty container when missing. Definitions registered while forcing
        are forced as well.
        """
        forced = 0
        queue = self._queues[RecordKind.DEFINITION]
        self._in_pass = True
        try:
            while queue:
                record = queue.pop(0)
                missing = self.missing(record)
                if missing is not None:
                    logger.info("Assuming namespace '%s' for definition '%s'", missing, record.name)
                self.tree.ensure(record.name)
                self._resolve(record)
                forced += 1
        finally:
            self._in_pass = False
        self.process_deferred()
        return forced

    def run_priority_definitions(self) -> int:
        """Execute deferred priority definitions, lowest priority first."""
        executed = 0
        while self._priority:
            self._priority.sort(key=lambda r: r.priority)
            record = self._priority.pop(0)
            record.value = self._execute_definition(record.name, record.declaration.definition)
            executed += 1
            self.process_deferred()
        return executed

    def unresolved(self) -> List[Tuple[RegistryRecord, Optional[str]]]:
        """Pending classes and interfaces paired with their first missing dependency."""
        result = []
        for kind in (RecordKind.INTERFACE, RecordKind.CLASS):
            for record in self._queues[kind]:
                result.append((record, self.missing(record)))
        return result

    def find_cycles(self) -> List[List[str]]:
        """
        Strongly connected components among pending records.

        Edges run from a pending record to every pending record it depends
        on. Components of one record are reported only for self-loops.
        """
        pending: Dict[str, RegistryRecord] = {}
        for kind in PASS_ORDER:
            for record in self._queues[kind]:
                pending.setdefault(record.name, record)

        edges = {
            name: [dep for dep in record.dependencies() if dep in pending]
            for name, record in pending.items()
        }
        return _strongly_connected(edges)

    def singleton(self, class_path: str, *args: Any) -> Any:
        """Return the shared instance of the class at `class_path`, creating it once."""
        path = f"{class_path}.singleton"
        instance = self.tree.get(path)
        if instance is None:
            cls = self.tree.get(class_path)
            if not callable(cls):
                logger.error("Cannot create singleton: '%s' is not a class.", class_path)
                return None
            instance = self.tree.set(path, cls())
            init_singleton: Optional[Callable[..., Any]] = getattr(instance, "init_singleton", None)
            if callable(init_singleton):
                init_singleton(*args)
        return instance


def _strongly_connected(edges: Dict[str, List[str]]) -> List[List[str]]:
    index_of: Dict[str, int] = {}
    lowlink: Dict[str, int] = {}
    on_stack: Dict[str, bool] = {}
    stack: List[str] = []
    components: List[List[str]] = []
    counter = count()

    def visit(node: str) -> None:
        index_of[node] = lowlink[node] = next(counter)
        stack.append(node)
        on_stack[node] = True
        for target in edges.get(node, ()):
            if target not in index_of:
                visit(target)
                lowlink[node] = min(lowlink[node], lowlink[target])
            elif on_stack.get(target):
                lowlink[node] = min(lowlink[node], index_of[target])
        if lowlink[node] == index_of[node]:
            component = []
            while True:
                member = stack.pop()
                on_stack[member] = False
                component.append(member)
                if member == node:
                    break
            if len(component) > 1 or node in edges.get(node, ()):
                components.append(sorted(component))

    for node in edges:
        if node not in index_of:
            visit(node)
    return components
