"""
Pytest configuration and shared fixtures.
"""

import io
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest
from openpyxl import Workbook

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


def build_workbook(sheets: Dict[str, List[Dict[str, Any]]]) -> bytes:
    """
    Build an .xlsx in memory.

    Each sheet's header row is the union of its rows' keys, in first-seen order.
    """
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        headers: List[str] = []
        for row in rows:
            for key in row:
                if key not in headers:
                    headers.append(key)
        ws.append(headers)
        for row in rows:
            ws.append([row.get(h) for h in headers])
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook():
    return build_workbook


@pytest.fixture
def minimal_sheets():
    """Scenario: one garage with one level served by srv1."""
    return {
        "Garages": [{"Garage": "A", "VisibleGarageName": "Alpha"}],
        "GarageLevels": [
            {"Garage": "A", "Level": "L1", "VisibleLevelName": "Ground",
             "MaximumOccupancy": 150, "Server": "srv1"},
        ],
    }


@pytest.fixture
def site_sheets(minimal_sheets):
    """Minimal garage plus an FLI camera, a server-assigned LPR camera and an nwave sensor group."""
    sheets = dict(minimal_sheets)
    sheets["FLICameras"] = [
        {"Garage": "A", "Level": "L1", "CameraName": "CAM-1", "IsEntryExitCamera": "true"},
    ]
    sheets["Cameras"] = [
        {"Name": "CAM-1", "DetectionType": "FLI", "IPAddress": "10.0.0.5", "Port": "80", "Server": "srv1"},
        {"Name": "CAM-2", "DetectionType": "LPR", "IPAddress": "10.0.0.6", "Server": "srv1"},
    ]
    sheets["SensorGroups"] = [
        {"Garage": "A", "Level": "L1", "GroupID": "G1", "SensorProtocol": "nwave", "ControllerKey": "KEY"},
    ]
    sheets["Sensors"] = [
        {"SensorGroupID": "G1", "SensorName": "S-1", "ParkingType": "ada"},
    ]
    return sheets


@pytest.fixture
def site_workbook(make_workbook, site_sheets):
    return make_workbook(site_sheets)


@pytest.fixture
def fixed_clock():
    class FixedClock:
        def now(self):
            return datetime(2024, 1, 1, tzinfo=timezone.utc)

    return FixedClock()


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "paths": {
            "root": "output/ensight",
            "camera_hub": "CameraHub/CameraHub-config.xml",
            "devices_config": "EPIC/Config/DevicesConfig.xml",
            "fli_dir": "FLI/Config",
        },
        "web": {"host": "127.0.0.1", "port": 8080},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "default.yaml").write_text("""
paths:
  root: "output/ensight"
web:
  host: "127.0.0.1"
  port: 8080
log_path: "logs/test.log"
log_level: "INFO"
""")
    return config_dir
