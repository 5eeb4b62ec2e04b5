"""
Class and interface construction for registered declarations.

Purely structural: given a body mapping and an optional parent, build a
Python class. Dependency awareness lives in the registry, not here.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple


class DeclaredClass:
    """
    Root of every class built from a declaration.

    Construction is delegated to an `init` method when the body defines one,
    so declaration bodies can stay plain mappings of functions.
    """

    declared_name: ClassVar[str] = ""
    declared_interfaces: ClassVar[Tuple[type, ...]] = ()

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        init = getattr(self, "init", None)
        if callable(init):
            init(*args, **kwargs)


class Interface:
    """Root of every interface built from a declaration."""

    declared_name: ClassVar[str] = ""
    required_members: ClassVar[Tuple[str, ...]] = ()


def _short_name(name: str) -> str:
    return name.rsplit(".", 1)[-1]


def build_class(
    name: str,
    body: Optional[Mapping[str, Any]] = None,
    parent: Optional[type] = None,
    interfaces: Sequence[type] = (),
) -> type:
    namespace: Dict[str, Any] = dict(body or {})
    namespace["declared_name"] = name
    namespace["declared_interfaces"] = tuple(interfaces)
    namespace.setdefault("__qualname__", name)
    namespace.setdefault("__module__", name.rpartition(".")[0] or "__main__")
    base = parent if isinstance(parent, type) else DeclaredClass
    return type(_short_name(name), (base,), namespace)


def build_interface(
    name: str,
    body: Optional[Mapping[str, Any]] = None,
    parent: Optional[type] = None,
) -> type:
    members = dict(body or {})
    base = parent if isinstance(parent, type) and issubclass(parent, Interface) else Interface
    required = tuple(dict.fromkeys(base.required_members + tuple(members)))
    namespace: Dict[str, Any] = dict(members)
    namespace["declared_name"] = name
    namespace["required_members"] = required
    namespace.setdefault("__qualname__", name)
    return type(_short_name(name), (base,), namespace)


def is_declared_class(value: Any) -> bool:
    return isinstance(value, type) and issubclass(value, DeclaredClass)


def is_interface(value: Any) -> bool:
    return isinstance(value, type) and issubclass(value, Interface)


def conformance_problems(cls: type, interfaces: Sequence[Any]) -> List[str]:
    """Describe every way `cls` fails to implement `interfaces`."""
    problems: List[str] = []
    for interface in interfaces:
        if not is_interface(interface):
            problems.append(
                f"Class '{cls.__qualname__}' tries to implement a non-Interface "
                f"based object '{getattr(interface, 'declared_name', None) or 'UNKNOWN'}'."
            )
            continue
        for member in interface.required_members:
            if not callable(getattr(interface, member, None)):
                # data members of an interface are not enforced
                continue
            if not hasattr(cls, member):
                problems.append(
                    f"Class '{cls.__qualname__}' tries to implement the interface "
                    f"'{interface.declared_name}' but does not contain the required method: {member}."
                )
            elif not callable(getattr(cls, member)):
                problems.append(
                    f"Class '{cls.__qualname__}' tries to implement the interface "
                    f"'{interface.declared_name}' but does not contain the required method: "
                    f"{member}, although it is present as a non-function."
                )
    return problems
