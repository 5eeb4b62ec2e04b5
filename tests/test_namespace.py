"""Tests for the dotted-path namespace tree."""

from nsboot.kernel.namespace import Namespace, NamespaceTree, parent_chain


def test_parent_chain():
    assert parent_chain("a.b.c") == ["a", "a.b"]
    assert parent_chain("a") == []


def test_set_creates_placeholders_for_ancestors():
    tree = NamespaceTree()
    tree.set("app.views.Main", 1)

    assert isinstance(tree.get("app"), Namespace)
    assert isinstance(tree.get("app.views"), Namespace)
    assert tree.get("app.views.Main") == 1
    assert "app.views" in tree


def test_set_keeps_existing_ancestors():
    tree = NamespaceTree()
    tree.set("app", {"name": "demo"})
    tree.set("app.child", 2)

    assert tree.get("app") == {"name": "demo"}
    assert tree.get("app.child") == 2


def test_get_walks_into_stored_values():
    tree = NamespaceTree()
    tree.set("config", {"db": {"host": "localhost"}})
    tree.set("Widget", type("Widget", (), {"size": 3}))

    assert tree.get("config.db.host") == "localhost"
    assert tree.get("Widget.size") == 3
    assert tree.get("config.db.port") is None
    assert tree.get("unknown.path") is None
    assert tree.get("") is None


def test_ensure_is_idempotent():
    tree = NamespaceTree()
    first = tree.ensure("a.b")
    tree.set("a.b.c", 1)

    assert tree.ensure("a.b") is first
    assert tree.get("a.b.c") == 1


def test_materialize_builds_attribute_graph():
    tree = NamespaceTree()
    tree.set("app.views.Main", "main view")
    tree.set("app.settings", {"debug": True})
    tree.set("app.settings.level", 3)

    root = tree.materialize()

    assert root.app.views.Main == "main view"
    assert root.app.settings["level"] == 3
    assert root.app.settings["debug"] is True


def test_paths_are_sorted():
    tree = NamespaceTree()
    tree.set("b", 1)
    tree.set("a.c", 2)

    assert list(tree.paths()) == ["a", "a.c", "b"]
    assert len(tree) == 3
