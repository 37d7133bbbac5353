"""
Config dispatcher: decides which documents a device or a site touches.

Planning is pure: ``plan_*`` functions return ordered ExportFile lists.
The ``export_*`` functions hand each file to a Writer and return the
same list. Writer errors propagate unchanged.

Logical paths:
    cameraHub            per-site CameraHub document
    devicesConfig        per-site DevicesConfig document
    fli:<name>[-S<n>]    FLI plugin config per FLI endpoint
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Set

from codec import (
    emit_camera_hub_xml,
    emit_devices_config_xml,
    emit_fli_config_xml,
    fli_endpoints,
    parse_camera_hub_xml,
    parse_devices_config_xml,
)
from models.capabilities import Reader, Writer
from models.device import Device
from sitemodel import SiteModel

CAMERA_HUB = "cameraHub"
DEVICES_CONFIG = "devicesConfig"
FLI_PREFIX = "fli:"


@dataclass(frozen=True)
class ExportFile:
    logical_path: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"logical_path": self.logical_path, "content": self.content}


def fli_path(name: str) -> str:
    return f"{FLI_PREFIX}{name}"


def fli_name(logical_path: str) -> str:
    """Inverse of fli_path; raises ValueError for other paths."""
    if not logical_path.startswith(FLI_PREFIX):
        raise ValueError(f"not an FLI path: {logical_path}")
    return logical_path[len(FLI_PREFIX):]


def config_file_paths(device: Device) -> List[str]:
    """Logical paths of every document that mentions ``device``."""
    if not device.is_camera:
        return [DEVICES_CONFIG]
    paths = [CAMERA_HUB, DEVICES_CONFIG]
    paths.extend(fli_path(e.name) for e in fli_endpoints(device))
    return paths


def _fli_files(devices: Iterable[Device]) -> List[ExportFile]:
    files: List[ExportFile] = []
    seen: Set[str] = set()
    for device in devices:
        for endpoint in fli_endpoints(device):
            path = fli_path(endpoint.name)
            if path in seen:
                logging.warning(f"Duplicate FLI camera name {endpoint.name}; keeping the first config")
                continue
            seen.add(path)
            files.append(ExportFile(path, emit_fli_config_xml(device, endpoint.name)))
    return files


def plan_device_export(site: SiteModel, device_id: int) -> List[ExportFile]:
    """
    Files covering one device.

    A camera yields cameraHub and devicesConfig filtered to the camera,
    then its FLI documents. Signs and sensors yield devicesConfig only.
    """
    device = site.device(device_id)
    files: List[ExportFile] = []
    if device.is_camera:
        files.append(ExportFile(CAMERA_HUB, emit_camera_hub_xml([device])))
    files.append(ExportFile(DEVICES_CONFIG, emit_devices_config_xml([device])))
    if device.is_camera:
        files.extend(_fli_files([device]))
    return files


def plan_site_export(site: SiteModel) -> List[ExportFile]:
    """
    Files for every garage of the site.

    cameraHub is present only when the site has at least one camera;
    devicesConfig is always present.
    """
    devices = list(site.all_devices())
    cameras = [d for d in devices if d.is_camera]
    files: List[ExportFile] = []
    if cameras:
        files.append(ExportFile(CAMERA_HUB, emit_camera_hub_xml(cameras)))
    files.append(ExportFile(DEVICES_CONFIG, emit_devices_config_xml(devices)))
    files.extend(_fli_files(cameras))
    return files


def _write(files: List[ExportFile], writer: Writer) -> List[ExportFile]:
    for f in files:
        writer.write(f.logical_path, f.content)
    return files


def export_device(site: SiteModel, device_id: int, writer: Writer) -> List[ExportFile]:
    files = _write(plan_device_export(site, device_id), writer)
    logging.info(f"Exported device {device_id}: {len(files)} file(s)")
    return files


def export_site(site: SiteModel, writer: Writer) -> List[ExportFile]:
    files = _write(plan_site_export(site), writer)
    logging.info(f"Exported site: {len(files)} file(s)")
    return files


def _read_text(reader: Reader, logical_path: str) -> str:
    try:
        data = reader.read_bytes(logical_path)
    except FileNotFoundError:
        logging.info(f"Bootstrap: {logical_path} not found, skipping")
        return ""
    return data.decode("utf-8-sig")


def bootstrap_from_install(site: SiteModel, level_id: int, reader: Reader) -> List[Device]:
    """
    Load devices from an existing install into a level.

    Reads cameraHub then devicesConfig; a name found in both keeps the
    cameraHub entry. Merged devices are pending placement.
    """
    site.level(level_id)

    parsed: List[Device] = []
    camera_hub = _read_text(reader, CAMERA_HUB)
    if camera_hub:
        parsed.extend(parse_camera_hub_xml(camera_hub))
    devices_config = _read_text(reader, DEVICES_CONFIG)
    if devices_config:
        parsed.extend(parse_devices_config_xml(devices_config))

    unique: Dict[str, Device] = {}
    for device in parsed:
        unique.setdefault(device.name, device)

    merged = site.merge_devices(level_id, list(unique.values()))
    logging.info(f"Bootstrapped {len(merged)} device(s) into level {level_id}")
    return merged
