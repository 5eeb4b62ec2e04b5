"""
Step definitions for the ResourceLoader feature.

The loader is driven by the test (no fetcher), so completions and timeouts
happen exactly when a step says so.

BDD Flow: Feature file -> Step definitions -> Implementation
"""

import logging
from collections import Counter

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from nsboot.kernel.loader import ResourceLoader
from nsboot.kernel.schema import ResourceStatus

# Load scenarios from feature file
scenarios("../features/loader.feature")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def test_context():
    """Shared context for passing data between steps."""
    return {
        "loader": None,
        "executed": [],
        "loaded_callbacks": 0,
        "settled": 0,
    }


# =============================================================================
# Background Steps
# =============================================================================


@given("a host-driven loader")
def host_driven_loader(test_context):
    def execute(request, payload):
        test_context["executed"].append(request.id)
        if callable(payload):
            payload()

    def on_loaded():
        test_context["loaded_callbacks"] += 1

    def on_settled():
        test_context["settled"] += 1

    test_context["loader"] = ResourceLoader(
        locate=lambda resource_id: f"/srv/{resource_id.replace('.', '/')}.py",
        execute=execute,
        on_loaded=on_loaded,
        on_settled=on_settled,
    )


@given(parsers.parse('the loader was started with "{resource_id}"'))
def loader_started(test_context, resource_id):
    test_context["loader"].start(resource_id)


# =============================================================================
# When Steps
# =============================================================================


@when(parsers.re(r'I request "(?P<resource_id>[^"]+)"$'))
def request_resource(test_context, resource_id):
    test_context["loader"].request(resource_id)


@when(parsers.parse('I request "{resource_id}" with a callback that raises'))
def request_with_raising_callback(test_context, resource_id):
    def callback():
        raise ZeroDivisionError("division by zero")

    test_context["loader"].request(resource_id, callback=callback)


@when(parsers.re(r'"(?P<resource_id>[^"]+)" completes$'))
def complete_resource(test_context, resource_id):
    test_context["loader"].complete(resource_id)


@when(parsers.parse('"{resource_id}" completes and requests "{nested}"'))
def complete_with_nested_request(test_context, resource_id, nested):
    loader = test_context["loader"]
    loader.complete(resource_id, lambda: loader.request(nested))


@when(parsers.parse('"{resource_id}" times out'))
def expire_resource(test_context, resource_id):
    test_context["loader"].expire(resource_id)


@when(parsers.parse('resources complete in the order "{order}"'))
def complete_in_order(test_context, order):
    for resource_id in order.split(","):
        test_context["loader"].complete(resource_id.strip())


# =============================================================================
# Then Steps
# =============================================================================


@then(parsers.parse("the pending count is {count:d}"))
def check_pending(test_context, count):
    assert test_context["loader"].pending == count


@then("the loader has not settled")
def check_not_settled(test_context):
    assert test_context["settled"] == 0


@then(parsers.parse("the loader settled {times:d} time"))
def check_settled(test_context, times):
    assert test_context["settled"] == times
    assert test_context["loader"].settled_count == times


@then(parsers.parse("{count:d} resources were requested"))
def check_request_count(test_context, count):
    assert test_context["loader"].count == count


@then(parsers.parse('"{resource_id}" has status "{status}"'))
def check_status(test_context, resource_id, status):
    assert test_context["loader"].get(resource_id).status == ResourceStatus(status)


@then("every resource ran its completion callback once")
def check_each_ran_once(test_context):
    loader = test_context["loader"]
    executed = Counter(test_context["executed"])
    assert set(executed) == set(loader.requests)
    assert all(times == 1 for times in executed.values())
    assert test_context["loaded_callbacks"] == loader.count


@then(parsers.parse('the error log mentions "{text}"'))
def check_error_logged(caplog, text):
    errors = [r.getMessage() for r in caplog.records if r.levelno >= logging.ERROR]
    assert any(text in message for message in errors), f"'{text}' not in {errors}"
