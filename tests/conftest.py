"""
Pytest configuration and shared fixtures for nsboot tests.
"""
from typing import Any, Dict, Optional

import pytest

from nsboot.config import BootConfig, load_config
from nsboot.kernel.engine import BootEngine


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


BASE_CONFIG: Dict[str, Any] = {
    "app_name": "Test Application",
    "site": {"deploy": "/srv", "app": "/srv/app", "client": "/srv/client", "context": "/srv/ctx"},
    "loader": {"roots": {"lib": {"root": "/lib"}}},
    "debug": {"on": True, "args_check": True, "interfaces_check": True},
}


@pytest.fixture
def make_config():
    """Build a validated BootConfig from the test defaults plus overrides."""

    def _make(**overrides: Any) -> BootConfig:
        config = load_config(_merge(BASE_CONFIG, overrides))
        assert config is not None, "test configuration failed to load"
        return config

    return _make


@pytest.fixture
def make_engine(make_config):
    """Build a host-driven engine (no fetcher) unless one is supplied."""

    def _make(config: Optional[BootConfig] = None, **kwargs: Any) -> BootEngine:
        return BootEngine(config or make_config(), **kwargs)

    return _make
