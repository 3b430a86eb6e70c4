"""Tests for variable collection (osdinfo.collect)."""

import base64

import pytest

from conftest import make_config, source

from osdinfo.collect import (
    DeploymentProduct,
    EnvironSource,
    JsonFileSource,
    MappingSource,
    VariableSource,
    collect,
    detect_product,
    sanitize_name,
)
from osdinfo.collect._defaults import decode_user_id, task_sequence_version
from osdinfo.errors import ConfigError
from osdinfo.model.entries import ValueKind


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

class TestSources:
    def test_mapping_is_variable_source(self):
        assert isinstance(MappingSource({}), VariableSource)

    def test_mapping_lookup_case_insensitive(self):
        src = MappingSource({"OSDComputerName": "PC01"})
        assert src.get("osdcomputername") == "PC01"
        assert src.get("Missing") is None

    def test_mapping_none_becomes_empty(self):
        assert MappingSource({"A": None}).get("A") == ""

    def test_json_file(self, tmp_path):
        path = tmp_path / "vars.json"
        path.write_text('{"BuildID": "WIN11", "IsVM": true}', encoding="utf-8")
        src = JsonFileSource(path)
        assert src.names() == ["BuildID", "IsVM"]
        assert src.get("IsVM") == "True"

    def test_json_file_not_object(self, tmp_path):
        path = tmp_path / "vars.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigError, match="JSON object"):
            JsonFileSource(path)

    def test_json_file_missing(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot read"):
            JsonFileSource(tmp_path / "nope.json")

    def test_environ(self):
        src = EnvironSource({"XOSDInfo_Site": "Lab"})
        assert src.get("XOSDInfo_Site") == "Lab"


# ---------------------------------------------------------------------------
# Names and defaults
# ---------------------------------------------------------------------------

class TestSanitizeName:
    def test_strips_separators(self):
        assert sanitize_name("_SMSTS Package.ID") == "SMSTSPackageID"

    def test_strips_punctuation(self):
        assert sanitize_name("Build-Name(1)") == "BuildName1"

    def test_only_separators(self):
        assert sanitize_name("_. _") == ""


class TestDefaults:
    def test_configmgr_marker(self):
        assert detect_product(source(_SMSTSPackageID="PS100012")) == DeploymentProduct.CONFIGMGR

    def test_empty_marker_is_mdt(self):
        assert detect_product(source(_SMSTSPackageID=" ")) == DeploymentProduct.MDT

    def test_task_sequence_version(self):
        assert task_sequence_version('<sequence version="3.10"><step/></sequence>') == "3.10"

    def test_task_sequence_version_bad_xml(self):
        assert task_sequence_version("<sequence") is None

    def test_decode_user_id(self):
        assert decode_user_id(base64.b64encode(b"svc_deploy").decode()) == "svc_deploy"

    def test_decode_user_id_invalid(self):
        assert decode_user_id("not base64!") is None


# ---------------------------------------------------------------------------
# collect()
# ---------------------------------------------------------------------------

class TestCollect:
    def test_empty_source(self):
        assert len(collect(MappingSource({}), make_config())) == 0

    def test_mdt_defaults(self):
        entries = collect(source(BuildID="WIN11-22H2", IsVM="False", Model=""), make_config())
        assert entries.get("BuildID").value == "WIN11-22H2"
        assert entries.get("IsVM").value is False
        assert entries.get("Model").kind == ValueKind.NULL
        assert entries.get("DeploymentProduct").value == "MDT"
        assert "TaskSequenceID" not in entries

    def test_configmgr_defaults(self):
        entries = collect(
            source(
                _SMSTSPackageID="PS100012",
                _SMSTSSiteCode="PS1",
                _SMSTSTaskSequence='<sequence version="3.10"/>',
                BuildID="ignored",
            ),
            make_config(),
        )
        assert entries.get("SMSTSPackageID").value == "PS100012"
        assert entries.get("SMSTSSiteCode").value == "PS1"
        assert entries.get("DeploymentProduct").value == "ConfigMgr"
        assert entries.get("TaskSequenceVersion").kind == ValueKind.NUMBER
        assert "BuildID" not in entries

    def test_defaults_in_name_order(self):
        entries = collect(source(TaskSequenceID="T1", BuildID="B1", Make="M"), make_config())
        names = entries.names()
        assert names.index("BuildID") < names.index("Make") < names.index("TaskSequenceID")

    def test_user_id_decoded(self):
        entries = collect(source(UserID=base64.b64encode(b"admin").decode()), make_config())
        assert entries.get("DeploymentUserID").value == "admin"

    def test_custom_prefix_stripped(self):
        entries = collect(source(XOSDInfo_Site="Lab 4", Other="x"), make_config())
        assert entries.get("Site").value == "Lab 4"
        assert "Other" not in entries

    def test_custom_prefix_case_insensitive(self):
        entries = collect(source(xosdinfo_Ring="2"), make_config())
        assert entries.get("Ring").value == 2.0

    def test_custom_prefix_anchored(self):
        entries = collect(source(My_XOSDInfo_Ring="2"), make_config())
        assert "Ring" not in entries

    def test_custom_name_sanitized(self):
        entries = collect(source(**{"XOSDInfo_Install.Date": "2020-03-22"}), make_config())
        assert entries.get("InstallDate").kind == ValueKind.DATETIME

    def test_custom_types(self):
        entries = collect(
            source(XOSDInfo_Flag="Yes", XOSDInfo_Size="43.5", XOSDInfo_Note="Foo_Bar"),
            make_config(),
        )
        assert entries.get("Flag").value is True
        assert entries.get("Size").value == pytest.approx(43.5)
        assert entries.get("Note").value == "Foo_Bar"

    def test_dates_normalized(self):
        entries = collect(
            source(XOSDInfo_Stamp="2020-01-01T12:00:00"),
            make_config(source_time_zone_id="Europe/Berlin", destination_time_zone_id="America/New_York"),
        )
        stamp = entries.get("Stamp").value
        assert stamp.hour == 11
        assert stamp.utcoffset().total_seconds() == 0

    def test_elapsed_time(self):
        entries = collect(
            source(
                XOSDInfo_OSDStartTime="2020-01-01T00:00:00",
                XOSDInfo_OSDEndTime="2020-01-01T01:30:00",
            ),
            make_config(),
        )
        assert entries.get("OSDTotalHours").value == pytest.approx(1.5)
        assert entries.get("OSDTotalMinutes").value == pytest.approx(90.0)
        assert entries.get("OSDTotalSeconds").value == pytest.approx(5400.0)

    def test_elapsed_time_rounded(self):
        entries = collect(
            source(
                XOSDInfo_OSDStartTime="2020-01-01T00:00:00",
                XOSDInfo_OSDEndTime="2020-01-01T00:00:20",
            ),
            make_config(),
        )
        assert entries.get("OSDTotalMinutes").value == 0.33
        assert entries.get("OSDTotalHours").value == 0.01

    def test_elapsed_time_needs_both(self):
        entries = collect(source(XOSDInfo_OSDStartTime="2020-01-01T00:00:00"), make_config())
        assert "OSDTotalHours" not in entries

    def test_elapsed_time_needs_dates(self):
        entries = collect(
            source(XOSDInfo_OSDStartTime="soon", XOSDInfo_OSDEndTime="2020-01-01T00:00:00"),
            make_config(),
        )
        assert "OSDTotalHours" not in entries

    def test_sanitized_collision_last_wins(self):
        entries = collect(source(**{"XOSDInfo_A.B": "1", "XOSDInfo_AB": "2"}), make_config())
        assert entries.get("AB").value == 2.0
        assert len([n for n in entries.names() if n == "AB"]) == 1

    def test_custom_overrides_default(self):
        entries = collect(
            source(BuildID="WIN10", XOSDInfo_BuildID="WIN11"),
            make_config(),
        )
        assert entries.get("BuildID").value == "WIN11"

    def test_bad_value_skipped(self):
        entries = collect(source(XOSDInfo_Huge="1e999", XOSDInfo_Ok="1"), make_config())
        assert "Huge" not in entries
        assert entries.get("Ok").value == 1.0

    def test_unconvertible_date_skipped(self):
        entries = collect(
            source(XOSDInfo_End="9999-12-31T23:00:00", XOSDInfo_Ok="1"),
            make_config(source_time_zone_id="America/New_York"),
        )
        assert "End" not in entries
        assert "Ok" in entries

    def test_prefix_only_name_ignored(self):
        entries = collect(source(XOSDInfo_="x"), make_config())
        assert len(entries) == 0

    def test_unrelated_names_collect_nothing(self):
        entries = collect(source(PATH="/usr/bin", HOME="/root"), make_config())
        assert len(entries) == 0
        assert "DeploymentProduct" not in entries

    def test_product_label_follows_custom_variable(self):
        entries = collect(source(PATH="/usr/bin", XOSDInfo_Ring="Pilot"), make_config())
        assert entries.names() == ["DeploymentProduct", "Ring"]

    def test_leading_digit_name_skipped(self, caplog):
        entries = collect(
            source(XOSDInfo_1stBoot="True", XOSDInfo_Ring="Pilot"), make_config()
        )
        assert "1stBoot" not in entries
        assert entries.get("Ring").value == "Pilot"
        assert "must start with a letter" in caplog.text

    def test_leading_digit_after_sanitizing(self):
        entries = collect(source(**{"XOSDInfo__2nd": "x", "XOSDInfo_Ok": "1"}), make_config())
        assert entries.names() == ["DeploymentProduct", "Ok"]

    def test_custom_prefix_from_config(self):
        entries = collect(source(**{"Corp-Owner": "IT"}), make_config(variable_prefix="Corp-"))
        assert entries.get("Owner").value == "IT"
