"""Tests for boot configuration loading."""

import logging

import pytest

from nsboot.config import LOCAL_TIMEOUT, REMOTE_TIMEOUT, load_config, require_config
from nsboot.exceptions import ConfigError


def test_load_from_yaml(tmp_path):
    path = tmp_path / "boot.yaml"
    path.write_text(
        "app_name: Demo\n"
        "loader:\n"
        "  libs: [/boot/prelude]\n"
        "  wait_for: {markup: true}\n"
        "  roots:\n"
        "    app: {root: /app}\n"
        "debug:\n"
        "  on: true\n"
        "  startup: true\n"
    )

    config = load_config(path)

    assert config is not None
    assert config.app_name == "Demo"
    assert config.loader.libs == ["/boot/prelude"]
    assert config.loader.wait_for.markup is True
    assert config.loader.wait_for.page is False
    assert config.loader.roots["app"].root == "/app"
    assert config.startup_script == "^main"
    assert config.entry_point == "main"


def test_missing_loader_section_is_logged(caplog):
    with caplog.at_level(logging.ERROR):
        assert load_config({"app_name": "Demo"}) is None
    assert "Loader section, loader, is missing" in caplog.text


def test_missing_roots_is_logged(caplog):
    with caplog.at_level(logging.ERROR):
        assert load_config({"loader": {"libs": []}}) is None
    assert "loader.roots" in caplog.text


def test_invalid_yaml_is_logged(tmp_path, caplog):
    path = tmp_path / "broken.yaml"
    path.write_text("loader: [unclosed\n")

    with caplog.at_level(logging.ERROR):
        assert load_config(path) is None
    assert "not valid YAML" in caplog.text


def test_invalid_value_is_logged(caplog):
    with caplog.at_level(logging.ERROR):
        assert load_config({"loader": {"roots": {}, "timeout": -1}}) is None
    assert "loader.timeout" in caplog.text


def test_require_config_raises():
    with pytest.raises(ConfigError):
        require_config({"app_name": "Demo"})


@pytest.mark.parametrize(
    "host, expected",
    [("localhost", LOCAL_TIMEOUT), ("127.0.0.1", LOCAL_TIMEOUT), ("app.example.com", REMOTE_TIMEOUT)],
)
def test_default_timeout_depends_on_host(host, expected):
    config = load_config({"host": host, "loader": {"roots": {}}})
    assert config.resource_timeout == expected


def test_explicit_timeout_wins():
    config = load_config({"host": "app.example.com", "loader": {"roots": {}, "timeout": 2.5}})
    assert config.resource_timeout == 2.5


def test_debug_off_disables_checks():
    config = load_config(
        {"loader": {"roots": {}}, "debug": {"on": False, "args_check": True, "scripts": True}}
    )
    assert config.debug.args_check is False
    assert config.debug.interfaces_check is False
    assert config.debug.scripts is False


def test_exception_boundary_only_lifted_on_local_host():
    debug = {"on": True, "do_not_catch_all_exceptions_on_local_host": True}
    local = load_config({"host": "localhost", "loader": {"roots": {}}, "debug": debug})
    remote = load_config({"host": "app.example.com", "loader": {"roots": {}}, "debug": debug})

    assert local.catch_entry_exceptions is False
    assert remote.catch_entry_exceptions is True
