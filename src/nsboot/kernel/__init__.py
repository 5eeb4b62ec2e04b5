"""
Kernel: the resolution and boot machinery.

- schema: Declaration models, records and resource requests
- namespace: Dotted-path namespace tree
- registry: Deferred declaration registry (fixed-point resolver)
- loader: Resource loader and pending counter
- gate: Readiness gate
- finalizer: Boot sequence run when the gate trips
- engine: The context object tying it all together

Kernel = machinery. Everything outside it (locators, fetchers, config,
class construction, timing) is a collaborator the kernel calls through a
narrow interface.
"""
from .schema import (
    ClassDeclaration,
    DefinitionDeclaration,
    InterfaceDeclaration,
    RecordKind,
    RecordStatus,
    ResourceRequest,
    ResourceStatus,
)
from .namespace import Namespace, NamespaceTree
from .registry import DeclarationRegistry, RegistryRecord
from .loader import ResourceLoader
from .gate import ReadinessGate
from .finalizer import Finalizer
from .engine import BootEngine

__all__ = [
    # Schema
    "ClassDeclaration",
    "DefinitionDeclaration",
    "InterfaceDeclaration",
    "RecordKind",
    "RecordStatus",
    "ResourceRequest",
    "ResourceStatus",
    # Namespace
    "Namespace",
    "NamespaceTree",
    # Registry
    "DeclarationRegistry",
    "RegistryRecord",
    # Loader
    "ResourceLoader",
    # Gate
    "ReadinessGate",
    # Finalizer
    "Finalizer",
    # Engine
    "BootEngine",
]
