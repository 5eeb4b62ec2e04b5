"""
Dotted-name to resource locator translation.

    "app.views.main"       -> <roots["app"] or site.context>/views/main.py
    "^main"                -> <site.deploy>/main.py
    "@widgets.grid"        -> <site.client>/widgets/grid.py
    ".local.helper"        -> <site.context>/local/helper.py
    "/lib/x" , "@/lib/x"   -> site.deploy / site.app joined with the path
    "https://cdn/x.py"     -> unchanged

Pure string transform; nothing is touched on disk or the network.
"""

from __future__ import annotations

from typing import List, Optional

from .config import BootConfig

KNOWN_EXTENSIONS = frozenset(
    {
        "py", "pyw", "json", "yaml", "yml", "txt",
        "htm", "html", "js", "css", "gif", "jpg", "png",
    }
)
SOURCE_EXTENSIONS = frozenset({"py", "js", "css"})


def _ensure_extension(locator: str, extension: str) -> str:
    leaf = locator.rsplit("/", 1)[-1]
    candidate = leaf.rsplit(".", 1)[-1] if "." in leaf else None
    # ".min" is a marker, not an extension
    if candidate and candidate != "min" and candidate in KNOWN_EXTENSIONS:
        return locator
    return f"{locator}.{extension}"


def _join(base: str, tail: str) -> str:
    if not base:
        return tail
    if base.endswith(("/", "\\")):
        return base + tail
    return f"{base}/{tail}"


def locate(resource_id: str, config: BootConfig, extension: Optional[str] = None) -> str:
    """
    Translate a dotted name or locator into an absolute locator.

    Args:
        resource_id: Dotted name, optionally anchored, or a locator.
        config: Supplies the site roots, root aliases and build flags.
        extension: File type to append, "py" by default.

    Returns:
        The locator to fetch.
    """
    file_type = extension or "py"
    site = config.site
    if not resource_id:
        raise ValueError("A resource id is required to build a locator")

    if "//" in resource_id:
        return _ensure_extension(resource_id, file_type)
    if resource_id.startswith("/"):
        return _ensure_extension(site.deploy.rstrip("/") + resource_id, file_type)
    if resource_id.startswith("@/"):
        return _ensure_extension(site.app.rstrip("/") + resource_id[1:], file_type)

    anchor = resource_id[0]
    elements: List[str]
    if anchor == ".":
        elements = resource_id[1:].split(".")
        base = site.context
    elif anchor == "^":
        elements = resource_id[1:].split(".")
        base = _root_base(elements, config, site.deploy)
    elif anchor == "@":
        elements = resource_id[1:].split(".")
        base = site.client
    else:
        elements = resource_id.split(".")
        base = _root_base(elements, config, site.context)

    locator = _join(base, "/".join(elements)) if elements else base
    if config.production:
        locator += f"-{config.app_version}"
    if config.minimize_source and file_type in SOURCE_EXTENSIONS:
        locator += ".min"
    return f"{locator}.{file_type}"


def _root_base(elements: List[str], config: BootConfig, fallback: str) -> str:
    """Consume a leading root alias from `elements` and return the base it names."""
    root = config.loader.roots.get(elements[0]) if elements else None
    if root is None:
        return fallback
    elements.pop(0)
    return config.site.deploy.rstrip("/") + root.root
