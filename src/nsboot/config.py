"""
Boot configuration.

The configuration is application specific and usually lives in a YAML file:

    app_name: My Application
    startup_script: "^main"
    site:
      deploy: /srv/app
    loader:
      wait_for: {markup: false, page: false}
      roots:
        app: {root: /app}
    debug:
      on: true
      startup: true

A missing `loader` section or `loader.roots` is a configuration error and
startup halts before any resource is requested.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

LOCAL_HOSTS = ("localhost", "127.0.0.1", "")
LOCAL_TIMEOUT = 7.0
REMOTE_TIMEOUT = 70.0


def is_local_host(host: Optional[str]) -> bool:
    return (host or "") in LOCAL_HOSTS


class WaitFor(BaseModel):
    markup: bool = False
    page: bool = False


class RootSpec(BaseModel):
    root: str


class SiteRoots(BaseModel):
    """Base locations resources are addressed from."""

    deploy: str = ""
    app: str = ""
    client: str = ""
    context: str = ""


class LoaderConfig(BaseModel):
    libs: List[str] = Field(default_factory=list)
    wait_for: WaitFor = Field(default_factory=WaitFor)
    timeout: Optional[float] = Field(default=None, gt=0)
    roots: Dict[str, RootSpec]
    imports: bool = True


class DebugConfig(BaseModel):
    on: bool = False
    startup: bool = False
    scripts: bool = False
    args_check: bool = True
    interfaces_check: bool = True
    detect_cycles: bool = False
    do_not_catch_all_exceptions_on_local_host: bool = False

    @model_validator(mode="after")
    def disable_checks_when_off(self) -> "DebugConfig":
        if not self.on:
            self.args_check = False
            self.interfaces_check = False
            self.scripts = False
        return self


class BootConfig(BaseModel):
    app_name: str = ""
    app_description: str = ""
    app_version: str = "M.m.B"
    production: bool = False
    minimize_source: bool = False
    startup_script: str = "^main"
    entry_point: str = "main"
    host: str = "localhost"
    site: SiteRoots = Field(default_factory=SiteRoots)
    loader: LoaderConfig
    debug: DebugConfig = Field(default_factory=DebugConfig)

    @property
    def resource_timeout(self) -> float:
        if self.loader.timeout is not None:
            return self.loader.timeout
        return LOCAL_TIMEOUT if is_local_host(self.host) else REMOTE_TIMEOUT

    @property
    def catch_entry_exceptions(self) -> bool:
        return not (
            self.debug.do_not_catch_all_exceptions_on_local_host and is_local_host(self.host)
        )


def load_config(source: Union[str, Path, Mapping[str, Any]]) -> Optional[BootConfig]:
    """
    Load and validate a boot configuration.

    Args:
        source: Path to a YAML file, or an already parsed mapping.

    Returns:
        The configuration, or None after logging why it is unusable.
    """
    if isinstance(source, Mapping):
        raw: Any = dict(source)
    else:
        path = Path(source)
        try:
            raw = yaml.safe_load(path.read_text())
        except OSError as exc:
            logger.error("Configuration file %s could not be read: %s", path, exc)
            return None
        except yaml.YAMLError as exc:
            logger.error("Configuration file %s is not valid YAML: %s", path, exc)
            return None

    if not isinstance(raw, Mapping):
        logger.error("The configuration loaded but is not a mapping. The system is unable to start the application.")
        return None
    loader = raw.get("loader")
    if loader is None:
        logger.error("Loader section, loader, is missing from the configuration file.")
        return None
    if not isinstance(loader, Mapping) or loader.get("roots") is None:
        logger.error(
            "Root definitions are required but the roots section, loader.roots, is missing from the configuration file."
        )
        return None

    try:
        return BootConfig.model_validate(raw)
    except ValidationError as exc:
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"])
            logger.error("Invalid configuration value '%s': %s", location, error["msg"])
        return None


def require_config(source: Union[str, Path, Mapping[str, Any]]) -> BootConfig:
    """Like load_config, but raise ConfigError instead of returning None."""
    config = load_config(source)
    if config is None:
        raise ConfigError(f"Unusable boot configuration: {source}")
    return config
