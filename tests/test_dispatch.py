"""
Tests for the config dispatcher and the directory-backed host capabilities.
"""

import xml.etree.ElementTree as ET

import pytest

from dispatch import host
from dispatch import (
    CAMERA_HUB,
    DEVICES_CONFIG,
    DirectoryReader,
    DirectoryWriter,
    MemoryWriter,
    PathLayout,
    bootstrap_from_install,
    config_file_paths,
    export_device,
    export_site,
    fli_name,
    fli_path,
    plan_device_export,
    plan_site_export,
)
from importer import import_workbook
from models import (
    BadInput,
    CameraDetails,
    CameraType,
    Device,
    HARDWARE_DUAL_LENS,
    SensorDetails,
    SignDetails,
    Stream,
    UnknownEntity,
)
from models.config import PathsConfig
from sitemodel import SiteModel


@pytest.fixture
def site(site_workbook):
    return import_workbook(site_workbook)


def _by_name(site, name):
    return next(d for d in site.all_devices() if d.name == name)


@pytest.fixture
def dual_lens():
    return Device(
        id=1,
        name="DL",
        details=CameraDetails(
            hardware_type=HARDWARE_DUAL_LENS,
            stream1=Stream(sub_kind=CameraType.FLI, ip_address="1.1.1.1", port="80"),
            stream2=Stream(sub_kind=CameraType.LPR, ip_address="1.1.1.2", port="80"),
        ),
    )


class TestConfigFilePaths:
    """Tests for config_file_paths."""

    def test_fli_camera(self, site):
        assert config_file_paths(_by_name(site, "CAM-1")) == [CAMERA_HUB, DEVICES_CONFIG, "fli:CAM-1"]

    def test_lpr_camera(self, site):
        assert config_file_paths(_by_name(site, "CAM-2")) == [CAMERA_HUB, DEVICES_CONFIG]

    def test_sensor(self, site):
        assert config_file_paths(_by_name(site, "SensorGroup-G1")) == [DEVICES_CONFIG]

    def test_dual_lens(self, dual_lens):
        assert config_file_paths(dual_lens) == [CAMERA_HUB, DEVICES_CONFIG, "fli:DL-S1"]

    def test_fli_path_helpers(self):
        assert fli_name(fli_path("CAM-1")) == "CAM-1"
        with pytest.raises(ValueError):
            fli_name(CAMERA_HUB)


class TestPlanning:
    """Tests for plan_device_export and plan_site_export."""

    def test_site_plan(self, site):
        files = plan_site_export(site)

        assert [f.logical_path for f in files] == [CAMERA_HUB, DEVICES_CONFIG, "fli:CAM-1"]
        devices = ET.fromstring(files[1].content).findall("Device")
        assert [d.findtext("Name") for d in devices] == ["CAM-1", "CAM-2", "SensorGroup-G1"]

    def test_site_without_cameras(self):
        model = SiteModel()
        garage = model.add_garage("A")
        level = model.add_level(garage.id, "L1")
        model.add_device(level.id, "SIGN-1", SignDetails())

        assert [f.logical_path for f in plan_site_export(model)] == [DEVICES_CONFIG]

    def test_empty_site(self):
        files = plan_site_export(SiteModel())
        assert [f.logical_path for f in files] == [DEVICES_CONFIG]
        assert ET.fromstring(files[0].content).findall("Device") == []

    def test_camera_plan_filtered(self, site):
        files = plan_device_export(site, _by_name(site, "CAM-1").id)

        assert [f.logical_path for f in files] == [CAMERA_HUB, DEVICES_CONFIG, "fli:CAM-1"]
        cameras = ET.fromstring(files[0].content).findall("Cameras/Camera")
        assert [c.findtext("Name") for c in cameras] == ["CAM-1"]

    def test_sensor_plan(self, site):
        files = plan_device_export(site, _by_name(site, "SensorGroup-G1").id)
        assert [f.logical_path for f in files] == [DEVICES_CONFIG]

    def test_unknown_device(self, site):
        with pytest.raises(UnknownEntity):
            plan_device_export(site, 9999)

    def test_duplicate_fli_names(self, caplog):
        """Two FLI cameras with one name share a single FLI document."""
        model = SiteModel()
        garage = model.add_garage("A")
        first = model.add_level(garage.id, "L1")
        second = model.add_level(garage.id, "L2")
        model.add_device(first.id, "CAM-1", CameraDetails(), ip_address="10.0.0.1")
        model.add_device(second.id, "CAM-1", CameraDetails(), ip_address="10.0.0.2")

        files = plan_site_export(model)

        assert [f.logical_path for f in files].count("fli:CAM-1") == 1
        assert "Duplicate FLI camera name CAM-1" in caplog.text


class TestExport:
    """Tests for export_site and export_device through Writers."""

    def test_export_site_to_memory(self, site):
        writer = MemoryWriter()

        files = export_site(site, writer)

        assert set(writer.files) == {f.logical_path for f in files}
        assert writer.files[CAMERA_HUB] == files[0].content

    def test_export_device(self, site):
        writer = MemoryWriter()
        export_device(site, _by_name(site, "CAM-2").id, writer)
        assert set(writer.files) == {CAMERA_HUB, DEVICES_CONFIG}

    def test_writer_errors_propagate(self, site):
        class FailingWriter:
            def write(self, logical_path, content):
                raise OSError("disk full")

        with pytest.raises(OSError):
            export_site(site, FailingWriter())

    def test_directory_writer(self, site, tmp_path):
        layout = PathLayout(root=tmp_path)

        export_site(site, DirectoryWriter(layout))

        assert (tmp_path / "CameraHub" / "CameraHub-config.xml").is_file()
        assert (tmp_path / "EPIC" / "Config" / "DevicesConfig.xml").is_file()
        fli = tmp_path / "FLI" / "Config" / "CAM-1.xml"
        assert fli.read_text(encoding="utf-8").startswith("<?xml")
        assert not list(tmp_path.rglob("*.tmp"))
        assert layout.installed()[CAMERA_HUB]["exists"] is True

    def test_directory_writer_failure_removes_temp_file(self, tmp_path, monkeypatch):
        def _replace(src, dst):
            raise PermissionError("file in use")

        monkeypatch.setattr(host.os, "replace", _replace)
        writer = DirectoryWriter(PathLayout(root=tmp_path))

        with pytest.raises(PermissionError, match="file in use"):
            writer.write(CAMERA_HUB, "<CameraHub/>")

        assert not list(tmp_path.rglob("*.tmp"))
        assert not (tmp_path / "CameraHub" / "CameraHub-config.xml").exists()


class TestPathLayout:
    """Tests for PathLayout.resolve."""

    @pytest.mark.parametrize("name", ["", "../evil", "a/b", "a\\b"])
    def test_unsafe_fli_names(self, tmp_path, name):
        with pytest.raises(BadInput):
            PathLayout(root=tmp_path).resolve(fli_path(name))

    def test_unknown_logical_path(self, tmp_path):
        with pytest.raises(BadInput):
            PathLayout(root=tmp_path).resolve("somethingElse")

    def test_from_config(self, valid_config):
        layout = PathLayout.from_config(PathsConfig.from_dict(valid_config["paths"]))
        assert layout.resolve(fli_path("CAM-1")).as_posix().endswith("output/ensight/FLI/Config/CAM-1.xml")


class TestBootstrap:
    """Tests for bootstrap_from_install."""

    def test_merges_both_documents(self, site):
        install = MemoryWriter()
        export_site(site, install)

        target = SiteModel()
        garage = target.add_garage("Copy")
        new_level = target.add_level(garage.id, "L1")

        merged = bootstrap_from_install(target, new_level.id, install)

        assert [d.name for d in merged] == ["CAM-1", "CAM-2", "SensorGroup-G1"]
        assert all(d.pending_placement for d in merged)
        assert len({d.id for d in merged}) == 3
        cam2 = merged[1]
        assert cam2.details.sub_kind == CameraType.LPR
        assert isinstance(merged[2].details, SensorDetails)

    def test_missing_files_skipped(self):
        target = SiteModel()
        garage = target.add_garage("A")
        level = target.add_level(garage.id, "L1")

        assert bootstrap_from_install(target, level.id, MemoryWriter()) == []

    def test_bom_tolerated(self):
        target = SiteModel()
        garage = target.add_garage("A")
        level = target.add_level(garage.id, "L1")
        install = MemoryWriter({DEVICES_CONFIG: "\ufeff<Devices><Device><Name>S</Name><Type>SENSOR</Type></Device></Devices>"})

        merged = bootstrap_from_install(target, level.id, install)

        assert [d.name for d in merged] == ["S"]

    def test_unknown_level(self):
        with pytest.raises(UnknownEntity):
            bootstrap_from_install(SiteModel(), 42, MemoryWriter())

    def test_directory_reader(self, site, tmp_path):
        layout = PathLayout(root=tmp_path)
        export_site(site, DirectoryWriter(layout))
        level = site.garages[0].levels[0]

        merged = bootstrap_from_install(site, level.id, DirectoryReader(layout))

        assert len(merged) == 3
        assert len(site.level(level.id).devices) == 6

    def test_directory_reader_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DirectoryReader(PathLayout(root=tmp_path)).read_bytes(CAMERA_HUB)
