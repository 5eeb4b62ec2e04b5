"""Tests for the readiness gate, argument checks, cycle detection and timing."""

import logging

from nsboot.args import validate_args
from nsboot.fetchers import MemoryFetcher
from nsboot.kernel.gate import ReadinessGate
from nsboot.kernel.registry import DeclarationRegistry
from nsboot.kernel.schema import ClassDeclaration, DefinitionDeclaration
from nsboot.observers import ObserverList
from nsboot.timeline import Timeline


class TestReadinessGate:
    def test_trips_once_when_all_flags_set(self):
        calls = []
        gate = ReadinessGate(lambda: calls.append("ready"))

        gate.mark_page_loaded()
        gate.mark_resources_settled()
        assert calls == []
        assert gate.mark_markup_parsed() is None
        assert calls == ["ready"]

        gate.mark_resources_settled()
        gate.mark_page_loaded()
        assert calls == ["ready"]
        assert gate.tripped

    def test_check_reports_progress(self):
        gate = ReadinessGate(lambda: None)
        assert gate.check() is False
        gate.resources_settled = gate.markup_parsed = gate.page_loaded = True
        assert gate.check() is True
        assert gate.check() is None

    def test_verbose_logs_flags(self, caplog):
        gate = ReadinessGate(lambda: None, verbose=True)
        with caplog.at_level(logging.INFO):
            gate.mark_markup_parsed()
        assert "Resources not ready, markup ready, page not ready." in caplog.text


class TestValidateArgs:
    def test_implements_accepts_comma_separated_string(self):
        declaration = validate_args(ClassDeclaration, {"name": "Square", "implements": "IArea, IName"})
        assert declaration.implements == ["IArea", "IName"]

    def test_invalid_name_is_logged_not_raised(self, caplog):
        with caplog.at_level(logging.ERROR):
            declaration = validate_args(DefinitionDeclaration, {"name": "a..b", "definition": 1})
        assert declaration.name == "a..b"
        assert declaration.definition == 1
        assert "Invalid argument 'name'" in caplog.text

    def test_unchecked_values_get_defaults(self):
        declaration = validate_args(ClassDeclaration, {"name": "Square", "implements": "IArea"}, check=False)
        assert declaration.definition == {}
        assert declaration.interface_paths() == ["IArea"]


class TestCycles:
    def test_mutual_dependencies_are_reported(self):
        registry = DeclarationRegistry()
        registry.register_class("A", {}, extends="B")
        registry.register_class("B", {}, extends="A")
        registry.register_class("C", {}, extends="Missing")

        assert registry.find_cycles() == [["A", "B"]]

    def test_self_dependency_is_reported(self):
        registry = DeclarationRegistry()
        registry.register_class("Loop", {}, implements="Loop")

        assert registry.find_cycles() == [["Loop"]]


class TestTimeline:
    def test_events_are_recorded_and_observed(self):
        seen = []
        timeline = Timeline()
        timeline.notify(seen.append)

        timeline.event("Load script dependencies", 0)
        timeline.event("Resources settled", 1)
        timeline.clear()

        assert [getattr(event, "title", None) for event in seen] == [
            "Load script dependencies",
            "Resources settled",
            None,
        ]
        assert timeline.events == []

    def test_elapsed(self):
        timeline = Timeline()
        timeline.event("start")
        assert timeline.elapsed("start") >= 0
        assert timeline.elapsed("never") is None


def test_observer_failures_are_logged(caplog):
    observers = ObserverList("finished")
    calls = []

    def broken():
        raise RuntimeError("observer failed")

    observers.add(broken)
    observers.add(lambda: calls.append(1))
    observers.add(broken)

    with caplog.at_level(logging.ERROR):
        observers.fire()

    assert len(observers) == 2
    assert calls == [1]
    assert "Observer of 'finished' failed" in caplog.text


def test_boot_with_fetcher_outside_event_loop_is_refused(caplog, make_engine):
    engine = make_engine(fetcher=MemoryFetcher({}), entry=lambda: None)

    with caplog.at_level(logging.ERROR):
        engine.boot()

    assert engine.loader.count == 0
    assert not engine.finished()
    assert "needs a running event loop" in caplog.text
