"""Tests for the end-to-end run (osdinfo.runner)."""

import pytest

from conftest import make_config, source

from osdinfo.errors import CompileFailedError, StoreError
from osdinfo.runner import run
from osdinfo.store import CompileResult, MemoryRegistryStore, MemoryStructuredStore


BASE = r"HKLM:\SOFTWARE\OSDInfo"


class FailingCompiler:
    def __init__(self) -> None:
        self.calls = 0

    def compile(self, path):
        self.calls += 1
        return CompileResult(1, stderr="Syntax error")


class BrokenRegistry(MemoryRegistryStore):
    def set_string(self, path, name, value):
        raise RuntimeError("registry exploded")


def _stores():
    structured = MemoryStructuredStore()
    return {
        "registry_store": MemoryRegistryStore(),
        "structured_store": structured,
        "compiler": structured,
    }


def _source():
    return source(
        BuildID="WIN11",
        XOSDInfo_OSDStartTime="2020-01-01T00:00:00",
        XOSDInfo_OSDEndTime="2020-01-01T01:30:00",
        XOSDInfo_Ring="Pilot",
    )


class TestRun:
    def test_both_stores(self):
        stores = _stores()
        report = run(make_config(), _source(), **stores)
        assert report.ok
        values = stores["registry_store"].get_values(BASE)
        assert values["BuildID"] == "WIN11"
        assert values["OSDTotalHours"] == "1.5"
        assert values["OSDStartTime"] == "2020-01-01T00:00:00+00:00"
        instance = stores["structured_store"].get_instance("root\\cimv2", "OSDInfo")
        assert instance.values["OSDTotalHours"] == 1.5
        assert instance.values["Ring"] == "Pilot"
        assert "DateTime OSDStartTime;" in report.mof_text

    def test_registry_only(self):
        stores = _stores()
        report = run(make_config(wmi=False), _source(), **stores)
        assert report.publish is None
        assert report.mof_text is None
        assert stores["structured_store"].compiled == []
        assert stores["registry_store"].get_values(BASE)

    def test_wmi_only(self):
        stores = _stores()
        report = run(make_config(registry=False), _source(), **stores)
        assert report.registry is None
        assert stores["registry_store"].keys == {}
        assert report.publish.assigned

    def test_no_source(self):
        stores = _stores()
        report = run(make_config(), None, **stores)
        assert len(report.entries) == 0
        assert stores["registry_store"].keys == {}

    def test_empty_source_writes_nothing(self):
        stores = _stores()
        compiler = FailingCompiler()
        stores["compiler"] = compiler
        report = run(make_config(), source(), **stores)
        assert report.ok
        assert stores["registry_store"].keys == {}
        assert compiler.calls == 0

    def test_unrelated_names_write_nothing(self):
        stores = _stores()
        compiler = FailingCompiler()
        stores["compiler"] = compiler
        report = run(make_config(), source(PATH="/usr/bin", HOME="/root"), **stores)
        assert report.ok
        assert len(report.entries) == 0
        assert stores["registry_store"].keys == {}
        assert compiler.calls == 0

    def test_compile_failure_stops(self):
        stores = _stores()
        stores["compiler"] = FailingCompiler()
        with pytest.raises(CompileFailedError, match="Syntax error"):
            run(make_config(), _source(), **stores)

    def test_compile_failure_continues(self):
        stores = _stores()
        stores["compiler"] = FailingCompiler()
        report = run(make_config(continue_on_error=True), _source(), **stores)
        assert not report.ok
        assert report.errors[0].startswith("wmi:")
        assert stores["registry_store"].get_values(BASE)["BuildID"] == "WIN11"

    def test_unexpected_failure_propagates(self):
        stores = _stores()
        stores["registry_store"] = BrokenRegistry()
        with pytest.raises(RuntimeError, match="exploded"):
            run(make_config(), _source(), **stores)

    def test_unexpected_failure_continue(self):
        stores = _stores()
        stores["registry_store"] = BrokenRegistry()
        report = run(make_config(continue_on_error=True), _source(), **stores)
        assert report.errors == ["registry: registry exploded"]
        assert report.publish is not None

    def test_store_error_propagates(self):
        stores = _stores()
        stores["compiler"] = _AcceptAll()
        with pytest.raises(StoreError, match="no instance"):
            run(make_config(registry=False), _source(), **stores)


class _AcceptAll:
    def compile(self, path):
        return CompileResult(0)
