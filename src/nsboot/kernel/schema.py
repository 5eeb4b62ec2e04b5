from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecordKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    DEFINITION = "definition"


class RecordStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class ResourceStatus(str, Enum):
    REQUESTED = "requested"
    LOADED = "loaded"
    TIMED_OUT = "timed_out"


def split_paths(value: Any) -> Any:
    """Accept "a.I, b.J" the same as ["a.I", "b.J"]."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return value


def _check_dotted(name: str) -> str:
    if not name or any(not segment for segment in name.split(".")):
        raise ValueError(f"'{name}' is not a dotted path")
    return name


class ClassDeclaration(BaseModel):
    """Arguments of a class registration."""

    name: str
    definition: Dict[str, Any] = Field(default_factory=dict)
    extends: Optional[str] = None
    implements: List[str] = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_dotted(value)

    @field_validator("implements", mode="before")
    @classmethod
    def split_implements(cls, value: Any) -> Any:
        return split_paths(value)

    def interface_paths(self) -> List[str]:
        return split_paths(self.implements)


class InterfaceDeclaration(BaseModel):
    """Arguments of an interface registration."""

    name: str
    definition: Dict[str, Any] = Field(default_factory=dict)
    extends: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_dotted(value)


class DefinitionDeclaration(BaseModel):
    """
    Arguments of a namespace definition.

    The definition may be a plain value, a mapping, or a factory callable.
    A priority defers factory execution until the boot sequence finalizes.
    """

    name: str
    definition: Any = None
    priority: Optional[float] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_dotted(value)


@dataclass
class ResourceRequest:
    """One distinct resource load, tracked from request to completion."""

    id: str
    locator: str
    status: ResourceStatus = ResourceStatus.REQUESTED
    callback: Optional[Callable[[], Any]] = None
    timer: Optional[Any] = None  # asyncio.TimerHandle when a loop drives the load
    task: Optional[Any] = None
    requested_at: float = 0.0
    completed_at: Optional[float] = None

    @property
    def settled(self) -> bool:
        return self.status == ResourceStatus.LOADED
