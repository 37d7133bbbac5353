"""
Tests for the admin API routes.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from models.config import Config
from web.app import create_app
from web.services.config_service import ConfigService
from web.services.site_service import SiteService
from web.state import state


@pytest.fixture
def install_root(tmp_path):
    return tmp_path / "ensight"


@pytest.fixture
def client(install_root):
    state.reset()
    config = Config()
    config.paths.root = str(install_root)
    state.set_config(config)
    yield TestClient(create_app())
    state.reset()


@pytest.fixture
def loaded(client, site_workbook):
    """Client with the site workbook imported."""
    response = client.post("/api/site/import", content=site_workbook)
    assert response.status_code == 200
    return client


def _devices(client):
    site = client.get("/api/site").json()
    return {d["name"]: d for g in site["garages"] for lvl in g["levels"] for d in lvl["devices"]}


def _level_id(client):
    return client.get("/api/site").json()["garages"][0]["levels"][0]["id"]


class TestSite:
    """Import and read-only site views."""

    def test_health_before_import(self, client):
        assert client.get("/api/health").json() == {"ok": True, "site_loaded": False}

    def test_no_site_loaded(self, client):
        assert client.get("/api/site").status_code == 409

    def test_import_summary(self, client, site_workbook):
        response = client.post("/api/site/import", content=site_workbook)

        assert response.status_code == 200
        data = response.json()
        assert data["sheet_names"][:2] == ["Garages", "GarageLevels"]
        assert data["summary"]["devices"] == 3
        assert data["summary"]["cameras"] == 2
        assert client.get("/api/health").json()["site_loaded"] is True

    def test_import_empty_body(self, client):
        assert client.post("/api/site/import", content=b"").status_code == 400

    def test_import_garbage(self, client):
        assert client.post("/api/site/import", content=b"hello").status_code == 400

    def test_import_runs_off_event_loop(self, client, site_workbook, monkeypatch):
        seen = {}
        import_workbook = SiteService.import_workbook

        def _import(data):
            try:
                asyncio.get_running_loop()
                seen["loop"] = True
            except RuntimeError:
                seen["loop"] = False
            return import_workbook(data)

        monkeypatch.setattr(SiteService, "import_workbook", _import)

        assert client.post("/api/site/import", content=site_workbook).status_code == 200
        assert seen == {"loop": False}

    def test_site_tree(self, loaded):
        site = loaded.get("/api/site").json()

        garage = site["garages"][0]
        assert garage["name"] == "Alpha"
        assert garage["levels"][0]["total_spots"] == 150
        assert [s["name"] for s in garage["servers"]] == ["srv1"]
        assert "password" not in garage["servers"][0]

    def test_summary_and_raw(self, loaded):
        assert loaded.get("/api/site/summary").json()["sensors"] == 1
        raw = loaded.get("/api/site/raw").json()
        assert raw["row_counts"]["cameras"] == 2

    def test_findings(self, loaded):
        assert loaded.get("/api/site/findings").json() == []


class TestDevices:
    """Device edits and placement."""

    def test_get_device(self, loaded):
        cam = _devices(loaded)["CAM-1"]
        response = loaded.get(f"/api/devices/{cam['id']}")

        assert response.status_code == 200
        assert response.json()["kind"] == "camera"
        assert response.json()["details"]["is_entry_exit_camera"] is True

    def test_unknown_device(self, loaded):
        assert loaded.get("/api/devices/9999").status_code == 404

    def test_patch_fields_and_details(self, loaded):
        cam = _devices(loaded)["CAM-2"]

        response = loaded.patch(f"/api/devices/{cam['id']}", json={
            "ip_address": "10.0.0.60",
            "details": {"visible_name": "Entry", "stream1": {"ip_address": "10.0.0.61"}},
        })

        assert response.status_code == 200
        data = response.json()
        assert data["ip_address"] == "10.0.0.60"
        assert data["details"]["visible_name"] == "Entry"
        assert data["details"]["stream1"]["ip_address"] == "10.0.0.61"

    def test_patch_unknown_detail(self, loaded):
        cam = _devices(loaded)["CAM-2"]
        response = loaded.patch(f"/api/devices/{cam['id']}", json={"details": {"wheels": 4}})
        assert response.status_code == 400

    def test_patch_bad_sub_kind(self, loaded):
        cam = _devices(loaded)["CAM-2"]
        response = loaded.patch(f"/api/devices/{cam['id']}", json={"details": {"sub_kind": "thermal"}})
        assert response.status_code == 400

    def test_unassign_server(self, loaded):
        cam = _devices(loaded)["CAM-2"]
        assert cam["server_id"] is not None

        response = loaded.patch(f"/api/devices/{cam['id']}", json={"server_id": None})

        assert response.json()["server_id"] is None

    def test_assign_unknown_server(self, loaded):
        cam = _devices(loaded)["CAM-2"]
        response = loaded.patch(f"/api/devices/{cam['id']}", json={"server_id": 9999})
        assert response.status_code == 409

    def test_place_and_unplace(self, loaded):
        cam = _devices(loaded)["CAM-1"]

        placed = loaded.post(f"/api/devices/{cam['id']}/place", json={"x": 120, "y": 80}).json()
        assert (placed["x"], placed["y"], placed["pending_placement"]) == (120, 80, False)

        unplaced = loaded.post(f"/api/devices/{cam['id']}/unplace").json()
        assert unplaced["pending_placement"] is True

        actions = [e["action"] for e in loaded.get("/api/site/history").json()]
        assert actions == ["place-device", "unplace-device"]

    def test_delete(self, loaded):
        cam = _devices(loaded)["CAM-2"]

        assert loaded.delete(f"/api/devices/{cam['id']}").json() == {"ok": True}
        assert loaded.get(f"/api/devices/{cam['id']}").status_code == 404

    def test_config_paths(self, loaded, install_root):
        cam = _devices(loaded)["CAM-1"]

        data = loaded.get(f"/api/devices/{cam['id']}/config-paths").json()

        assert data["logical_paths"] == ["cameraHub", "devicesConfig", "fli:CAM-1"]
        assert data["files"][2] == str(install_root / "FLI" / "Config" / "CAM-1.xml")


class TestPreviewAndExport:
    """Document previews, export and bootstrap."""

    def test_preview_camera_hub(self, loaded):
        response = loaded.get("/api/preview/camera-hub")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert "<Name>CAM-1</Name>" in response.text

    def test_preview_devices_config(self, loaded):
        response = loaded.get("/api/preview/devices-config")
        assert "<Type>SENSORCONTROLLER</Type>" in response.text

    def test_preview_without_cameras(self, client, make_workbook, minimal_sheets):
        client.post("/api/site/import", content=make_workbook(minimal_sheets))
        assert client.get("/api/preview/camera-hub").status_code == 404

    def test_export_site(self, loaded, install_root):
        response = loaded.post("/api/export/site")

        assert response.status_code == 200
        assert [f["logical_path"] for f in response.json()["files"]] == ["cameraHub", "devicesConfig", "fli:CAM-1"]
        assert (install_root / "EPIC" / "Config" / "DevicesConfig.xml").is_file()
        assert loaded.get("/api/install").json()["cameraHub"]["exists"] is True

    def test_export_device(self, loaded):
        cam = _devices(loaded)["CAM-2"]
        files = loaded.post(f"/api/export/devices/{cam['id']}").json()["files"]
        assert [f["logical_path"] for f in files] == ["cameraHub", "devicesConfig"]

    def test_bootstrap(self, loaded):
        loaded.post("/api/export/site")

        response = loaded.post(f"/api/levels/{_level_id(loaded)}/bootstrap")

        assert response.status_code == 200
        assert response.json()["merged"] == 3
        assert loaded.get("/api/site/summary").json()["devices"] == 6

    def test_bootstrap_unknown_level(self, loaded):
        assert loaded.post("/api/levels/9999/bootstrap").status_code == 404


class TestConfigRoutes:
    """Config read and save."""

    def test_get_config(self, client, install_root):
        assert client.get("/api/config").json()["paths"]["root"] == str(install_root)

    def test_save_overrides(self, client, tmp_path, monkeypatch):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.yaml").write_text("web:\n  port: 8080\n")
        monkeypatch.setattr(ConfigService, "CONFIG_DIR", str(config_dir))

        response = client.post("/api/config", json={"overrides": {"paths": {"root": "D:/Ensight"}}})

        assert response.status_code == 200
        config = client.get("/api/config").json()
        assert config["paths"]["root"] == "D:/Ensight"
        assert config["web"]["port"] == 8080
        assert (config_dir / "config.yaml").is_file()

    def test_save_keeps_explicit_config_layer(self, client, tmp_path, monkeypatch):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.yaml").write_text("web:\n  port: 8080\n")
        explicit = tmp_path / "site.yaml"
        explicit.write_text("web:\n  port: 9100\n")
        monkeypatch.setattr(ConfigService, "CONFIG_DIR", str(config_dir))
        state.set_config(Config(), str(explicit))

        response = client.post("/api/config", json={"overrides": {"paths": {"root": "D:/Ensight"}}})

        assert response.status_code == 200
        config = client.get("/api/config").json()
        assert config["paths"]["root"] == "D:/Ensight"
        assert config["web"]["port"] == 9100
