import logging
import sys
import types

import pytest
from pydantic import ValidationError

from refdata import ResourceService, connect_listener
from refdata.loaders import JsonLoader, StaticLoader
from refdata.resources import resource


@resource(name="Item", indexes=["lvl"])
class Item:
    pass


@resource(name="Skill", indexes=["school"])
class Skill:
    pass


class RecordingListener:
    def __init__(self, name, calls, fail=False):
        self.name = name
        self.calls = calls
        self.fail = fail

    def on_reload(self):
        self.calls.append(self.name)
        if self.fail:
            raise RuntimeError(f"{self.name} broke")


def make_service(bindings, **kwargs):
    return ResourceService(loader=StaticLoader(bindings), **kwargs)


def test_initialize_loads_types_then_notifies(item_rows):
    calls = []
    seen = []

    service = make_service({Item: item_rows, Skill: [{"id": "fire", "school": "evocation"}]}, types=[Item, Skill])

    @service.listener
    def check():
        seen.append(len(service.list_all(Item)))
        calls.append("check")

    report = service.initialize()

    assert report.loaded == ["Item", "Skill"]
    assert report.ok
    assert calls == ["check"]
    # listeners only run after every store is loaded
    assert seen == [3]
    assert service.initialized
    assert service.get_by_unique("lvl", Item, 5) == item_rows[2]
    assert service.get_by_unique("school", Skill, "evocation")["id"] == "fire"


def test_initialize_tolerates_type_and_listener_failures(item_rows, caplog):
    calls = []
    listeners = [
        RecordingListener("a", calls),
        RecordingListener("b", calls, fail=True),
        RecordingListener("c", calls),
    ]
    service = make_service({Item: item_rows}, types=[Skill, Item], listeners=listeners)

    with caplog.at_level(logging.ERROR):
        report = service.initialize()

    assert report.loaded == ["Item"]
    assert list(report.failed) == ["Skill"]
    assert report.listener_failures == 1
    assert calls == ["a", "b", "c"]
    assert service.list_all(Item) == item_rows
    assert service.list_all(Skill) == []


def test_no_types_found_is_reported_once(caplog):
    service = make_service({}, discover=lambda packages: [])

    with caplog.at_level(logging.ERROR, logger="refdata.service"):
        report = service.initialize()

    assert report.loaded == [] and report.failed == {}
    assert service.registry.count() == 0
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "No resource types found" in errors[0].getMessage()


def test_discovery_error_is_contained(caplog):
    def broken(packages):
        raise ImportError("bad module")

    service = make_service({}, discover=broken)

    with caplog.at_level(logging.ERROR):
        report = service.initialize()

    assert report.loaded == []
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "Resource discovery failed" in errors[0].getMessage()


def test_undescribable_type_does_not_stop_the_batch(item_rows, caplog):
    calls = []
    service = make_service({Item: item_rows}, types=["", Item], listeners=[RecordingListener("l", calls)])

    with caplog.at_level(logging.ERROR):
        report = service.on_refresh()

    assert report.loaded == ["Item"]
    assert list(report.failed) == ["''"]
    assert service.list_all(Item) == item_rows
    assert calls == ["l"]
    assert "Resource initialization failed" not in caplog.text
    assert "" not in service.registry


def test_discover_receives_configured_packages(item_rows):
    received = []

    def discover(packages):
        received.append(tuple(packages))
        return [Item]

    service = ResourceService(
        {"PACKAGES": ["game.tables"]}, loader=StaticLoader({Item: item_rows}), discover=discover
    )
    service.initialize()

    assert received == [("game.tables",)]
    assert len(service.list_all(Item)) == 3


def test_refresh_latch_runs_initialize_once(item_rows):
    calls = []
    service = make_service({Item: item_rows}, types=[Item], listeners=[RecordingListener("l", calls)])

    assert service.on_refresh() is not None
    assert service.on_refresh() is None
    assert calls == ["l"]

    # a second service in the same process is latched as well
    other = make_service({Item: item_rows}, types=[Item])
    assert other.on_refresh() is None
    assert other.list_all(Item) == []


def test_refresh_reload_opt_in_reinitializes(item_rows):
    calls = []
    service = make_service(
        {Item: item_rows},
        types=[Item],
        listeners=[RecordingListener("l", calls)],
        conf={"REFRESH_EVENT_RELOAD": True},
    )

    service.on_refresh()
    service.on_refresh()

    assert calls == ["l", "l"]
    assert service.registry.store_for(Item).generation == 2


def test_reload_all_is_not_latched(item_rows):
    calls = []
    service = make_service({Item: item_rows}, types=[Item], listeners=[RecordingListener("l", calls)])
    service.on_refresh()

    service.reload_all()
    service.reload_all()

    assert calls == ["l", "l", "l"]
    assert service.registry.store_for(Item).generation == 3


def test_reload_failure_keeps_first_generation(item_rows, caplog):
    state = {"fail": False}

    def items():
        if state["fail"]:
            raise ValueError("truncated file")
        return item_rows

    service = make_service({Item: items}, types=[Item])
    service.initialize()
    state["fail"] = True

    with caplog.at_level(logging.ERROR):
        report = service.reload_all()

    assert list(report.failed) == ["Item"]
    assert service.list_all(Item) == item_rows
    assert len([r for r in caplog.records if r.levelno == logging.ERROR]) == 1


def test_on_refresh_contains_unexpected_errors(monkeypatch, caplog):
    service = make_service({}, types=[])

    def explode():
        raise RuntimeError("host state broken")

    monkeypatch.setattr(service, "initialize", explode)

    with caplog.at_level(logging.ERROR):
        assert service.on_refresh() is None

    assert "Resource initialization failed" in caplog.text


def test_pending_and_configured_listeners_are_collected(monkeypatch, item_rows):
    calls = []

    @connect_listener
    def pending():
        calls.append("pending")

    module = types.ModuleType("refdata_test_listeners")

    class ConfiguredListener:
        def on_reload(self):
            calls.append("configured")

    module.ConfiguredListener = ConfiguredListener
    monkeypatch.setitem(sys.modules, "refdata_test_listeners", module)

    service = make_service(
        {Item: item_rows},
        types=[Item],
        conf={"LISTENERS": ["refdata_test_listeners:ConfiguredListener", "refdata_test_listeners:Missing"]},
    )
    service.initialize()
    service.initialize()

    # listeners are registered once even across repeated initialization
    assert calls == ["pending", "configured", "pending", "configured"]
    assert len(service.hub) == 2


def test_default_loader_comes_from_settings():
    service = ResourceService()
    assert isinstance(service.loader, JsonLoader)
    assert service.registry.location == "res_db"


def test_invalid_settings_raise():
    with pytest.raises(ValidationError):
        ResourceService({"REFRESH_EVENT_RELOAD": "not-a-bool"}, loader=StaticLoader())
