"""
nsboot: asynchronous, dependency-driven application boot.

Public API re-exports from kernel/ (machinery) and the collaborator modules.
"""
from .kernel.schema import (
    ClassDeclaration,
    DefinitionDeclaration,
    InterfaceDeclaration,
    RecordKind,
    RecordStatus,
    ResourceRequest,
    ResourceStatus,
)
from .kernel.namespace import Namespace, NamespaceTree
from .kernel.registry import DeclarationRegistry, RegistryRecord
from .kernel.loader import ResourceLoader
from .kernel.gate import ReadinessGate
from .kernel.finalizer import Finalizer
from .kernel.engine import BootEngine
from .config import BootConfig, load_config, require_config
from .exceptions import ConfigError, NsbootError, ResourceFetchError
from .fetchers import FileFetcher, HttpFetcher, MemoryFetcher, make_fetcher
from .locator import locate
from .timeline import Timeline, TimingEvent

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
    # Loader / gate / finalizer
    "ResourceLoader",
    "ReadinessGate",
    "Finalizer",
    # Engine
    "BootEngine",
    # Collaborators
    "BootConfig",
    "load_config",
    "require_config",
    "locate",
    "FileFetcher",
    "HttpFetcher",
    "MemoryFetcher",
    "make_fetcher",
    "Timeline",
    "TimingEvent",
    # Errors
    "NsbootError",
    "ConfigError",
    "ResourceFetchError",
]
