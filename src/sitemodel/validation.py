"""
Invariant checks for SiteModel contents.

``device_errors`` is the strict check applied by mutation helpers before a
device enters the model. ``validate_site`` reports non-fatal findings over
the whole model, including states the importer tolerates (spot counts,
dangling flow destinations).
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Optional, Set

from models.device import (
    FLOW_GARAGE_ENTRY,
    FLOW_GARAGE_EXIT,
    CameraDetails,
    CameraType,
    Device,
    SensorDetails,
    SensorType,
    SignDetails,
    SignType,
)
from models.site import Finding, Garage, Level

SPOT_MISMATCH = "spot-mismatch"
DANGLING_FLOW_DESTINATION = "dangling-flow-destination"
DANGLING_SERVER = "dangling-server"
MISSING_COORDINATES = "missing-coordinates"
UNEXPECTED_COORDINATES = "unexpected-coordinates"
DUPLICATE_DEVICE_NAME = "duplicate-device-name"
DUAL_LENS_STREAMS = "dual-lens-streams"
DANGLING_DISPLAY_MAPPING = "dangling-display-mapping"


def device_errors(garage: Garage, device: Device) -> List[str]:
    """Return the invariant violations that block ``device`` from entering ``garage``."""
    errors: List[str] = []
    details = device.details

    if isinstance(details, CameraDetails):
        if not isinstance(details.sub_kind, CameraType):
            errors.append(f"camera subKind must be one of {[t.value for t in CameraType]}")
        if details.is_dual_lens and (details.stream1 is None or details.stream2 is None):
            errors.append("dual-lens camera requires both stream1 and stream2")
    elif isinstance(details, SignDetails):
        if not isinstance(details.sub_kind, SignType):
            errors.append(f"sign subKind must be one of {[t.value for t in SignType]}")
    elif isinstance(details, SensorDetails):
        if not isinstance(details.sub_kind, SensorType):
            errors.append(f"sensor subKind must be one of {[t.value for t in SensorType]}")
    else:
        errors.append(f"unsupported device details type {type(details).__name__}")

    if device.pending_placement:
        if device.x is not None or device.y is not None:
            errors.append("pending device must not carry coordinates")
    elif device.x is None or device.y is None:
        errors.append("placed device requires both x and y")

    if device.server_id is not None and garage.find_server(device.server_id) is None:
        errors.append(f"server {device.server_id} is not owned by garage {garage.id}")

    return errors


def _flow_target(value) -> Optional[int]:
    """Return the Level id a flow destination points at, or None for garage flows."""
    if value in (FLOW_GARAGE_ENTRY, FLOW_GARAGE_EXIT, "", None):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return -1


def _flow_destinations(details: CameraDetails) -> Iterable:
    yield details.flow_destination
    for _, stream in details.streams():
        if stream is not None:
            yield stream.flow_destination


def _level_findings(garage: Garage, level: Level, level_ids: Set[int]) -> List[Finding]:
    findings: List[Finding] = []

    if level.total_spots < level.ev_spots + level.ada_spots:
        findings.append(Finding(
            SPOT_MISMATCH, level.id,
            f"level '{level.name}' has {level.total_spots} spots but "
            f"{level.ev_spots} EV + {level.ada_spots} ADA",
        ))

    names = Counter(d.name for d in level.devices)
    for name, count in names.items():
        if count > 1:
            findings.append(Finding(
                DUPLICATE_DEVICE_NAME, level.id,
                f"device name '{name}' appears {count} times on level '{level.name}'",
            ))

    for device in level.devices:
        findings.extend(_device_findings(garage, device, level_ids))

    return findings


def _device_findings(garage: Garage, device: Device, level_ids: Set[int]) -> List[Finding]:
    findings: List[Finding] = []

    if device.pending_placement and (device.x is not None or device.y is not None):
        findings.append(Finding(UNEXPECTED_COORDINATES, device.id,
                                f"device '{device.name}' is pending placement but has coordinates"))
    if not device.pending_placement and (device.x is None or device.y is None):
        findings.append(Finding(MISSING_COORDINATES, device.id,
                                f"device '{device.name}' is placed but missing coordinates"))

    if device.server_id is not None and garage.find_server(device.server_id) is None:
        findings.append(Finding(DANGLING_SERVER, device.id,
                                f"device '{device.name}' references unknown server {device.server_id}"))

    details = device.details
    if isinstance(details, CameraDetails):
        if details.is_dual_lens and (details.stream1 is None or details.stream2 is None):
            findings.append(Finding(DUAL_LENS_STREAMS, device.id,
                                    f"dual-lens camera '{device.name}' must have two streams"))
        for destination in _flow_destinations(details):
            target = _flow_target(destination)
            if target is not None and target not in level_ids:
                findings.append(Finding(
                    DANGLING_FLOW_DESTINATION, device.id,
                    f"camera '{device.name}' flows to unknown level {destination!r}",
                ))
    elif isinstance(details, SignDetails):
        for level_id in details.display_mapping:
            if level_id not in level_ids:
                findings.append(Finding(
                    DANGLING_DISPLAY_MAPPING, device.id,
                    f"sign '{device.name}' maps to unknown level {level_id}",
                ))

    return findings


def validate_site(garages: Iterable[Garage]) -> List[Finding]:
    """Collect non-fatal findings for every garage, level and device."""
    findings: List[Finding] = []
    for garage in garages:
        level_ids = {level.id for level in garage.levels}
        for level in garage.levels:
            findings.extend(_level_findings(garage, level, level_ids))
    return findings
