"""
Import summary: what the workbook held versus what the model kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Set

from models.device import CameraDetails, SensorDetails, SignDetails

from .coercion import as_str
from .workbook import RawData


@dataclass
class ImportSummary:
    """
    Counts shown to the operator after an import.

    ``dangling`` counts rows the join skipped because the record they
    point at is missing: FLICameras rows without a Cameras row,
    DisplayLevels rows without a DisplayControllers row and SensorGroups
    rows without member Sensors.
    """
    garages: int = 0
    levels: int = 0
    devices: int = 0
    cameras: int = 0
    signs: int = 0
    sensors: int = 0
    pending_placement: int = 0
    sheet_rows: Dict[str, int] = field(default_factory=dict)
    dangling: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "garages": self.garages,
            "levels": self.levels,
            "devices": self.devices,
            "cameras": self.cameras,
            "signs": self.signs,
            "sensors": self.sensors,
            "pending_placement": self.pending_placement,
            "sheet_rows": dict(self.sheet_rows),
            "dangling": dict(self.dangling),
        }


def _names(rows, column: str) -> Set[str]:
    return {as_str(row.get(column)) for row in rows}


def dangling_counts(raw: RawData) -> Dict[str, int]:
    camera_names = _names(raw.cameras, "Name")
    controller_names = _names(raw.display_controllers, "DisplayName")
    group_ids = _names(raw.sensors, "SensorGroupID")
    return {
        "fli_cameras": sum(
            1 for r in raw.fli_cameras if as_str(r.get("CameraName")) not in camera_names
        ),
        "display_levels": sum(
            1 for r in raw.display_levels if as_str(r.get("DisplayName")) not in controller_names
        ),
        "sensor_groups": sum(
            1 for r in raw.sensor_groups if as_str(r.get("GroupID")) not in group_ids
        ),
    }


def summarize(site, raw: RawData) -> ImportSummary:
    summary = ImportSummary(
        garages=len(site.garages),
        sheet_rows=raw.row_counts(),
        dangling=dangling_counts(raw),
    )
    for garage in site.garages:
        summary.levels += len(garage.levels)
        for level in garage.levels:
            for device in level.devices:
                summary.devices += 1
                if isinstance(device.details, CameraDetails):
                    summary.cameras += 1
                elif isinstance(device.details, SignDetails):
                    summary.signs += 1
                elif isinstance(device.details, SensorDetails):
                    summary.sensors += 1
                if device.pending_placement:
                    summary.pending_placement += 1
    return summary
