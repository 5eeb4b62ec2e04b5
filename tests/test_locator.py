"""Tests for dotted-name to locator translation."""

import pytest

from nsboot.locator import locate


@pytest.fixture
def config(make_config):
    return make_config(
        site={
            "deploy": "https://example.test",
            "app": "https://example.test/app",
            "client": "https://example.test/client",
            "context": "https://example.test/ctx",
        },
        loader={"roots": {"shared": {"root": "/shared"}}},
    )


@pytest.mark.parametrize(
    "resource_id, expected",
    [
        ("views.main", "https://example.test/ctx/views/main.py"),
        (".local.helper", "https://example.test/ctx/local/helper.py"),
        ("^main", "https://example.test/main.py"),
        ("@widgets.grid", "https://example.test/client/widgets/grid.py"),
        ("shared.util", "https://example.test/shared/util.py"),
        ("^shared.util", "https://example.test/shared/util.py"),
        ("/lib/tools", "https://example.test/lib/tools.py"),
        ("@/lib/tools", "https://example.test/app/lib/tools.py"),
        ("/lib/tools.json", "https://example.test/lib/tools.json"),
        ("https://cdn.test/x", "https://cdn.test/x.py"),
        ("https://cdn.test/x.js", "https://cdn.test/x.js"),
    ],
)
def test_locate(config, resource_id, expected):
    assert locate(resource_id, config) == expected


def test_extension_override(config):
    assert locate("data.settings", config, extension="json") == "https://example.test/ctx/data/settings.json"


def test_min_is_not_an_extension(config):
    assert locate("/lib/tools.min", config) == "https://example.test/lib/tools.min.py"


def test_production_build_appends_version(make_config):
    config = make_config(
        production=True,
        minimize_source=True,
        app_version="1.2.3",
        site={"deploy": "/srv", "context": "/srv"},
    )

    assert locate("^main", config) == "/srv/main-1.2.3.min.py"
    assert locate("^main", config, extension="json") == "/srv/main-1.2.3.json"


def test_empty_id_is_rejected(config):
    with pytest.raises(ValueError):
        locate("", config)
