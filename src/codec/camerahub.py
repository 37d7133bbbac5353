"""
CameraHub document (one per site).

    <CameraHubConfig>
      <Cameras>
        <Camera>Name, RTSPUrl, FPS, Type, RecordRawClips, Enabled,
                MotionThreshold[, MACAddress]</Camera>
      </Cameras>
      <FLICameras>
        <CameraConfig>same envelope, FLI endpoints only</CameraConfig>
      </FLICameras>
    </CameraHubConfig>
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Iterable, List

from models.device import CameraDetails, CameraType, Device, HARDWARE_BULLET, Stream

from .endpoints import CameraEndpoint, camera_endpoints
from .rtsp import extract_ip, extract_port
from .xml_utils import child_text, load_root, sub, to_document

DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'
ROOT = "CameraHubConfig"
ROOT_ALIASES = (ROOT, "CameraHub")

# Settings every camera entry carries.
FPS = 5
RECORD_RAW_CLIPS = False
ENABLED = True
MOTION_THRESHOLD = 0.1

TYPE_CODES = {
    CameraType.FLI: "FLI",
    CameraType.LPR: "LPR",
    CameraType.PEOPLE: "PEOPLE",
}


def camera_type_code(sub_kind: CameraType) -> str:
    return TYPE_CODES.get(sub_kind, "FLI")


def camera_type_from_code(code: str) -> CameraType:
    if code == "FLI":
        return CameraType.FLI
    if code == "LPR":
        return CameraType.LPR
    return CameraType.PEOPLE


def _camera_entry(parent: ET.Element, tag: str, endpoint: CameraEndpoint, type_code: str) -> None:
    entry = sub(parent, tag)
    sub(entry, "Name", endpoint.name)
    sub(entry, "RTSPUrl", endpoint.rtsp_url)
    sub(entry, "FPS", FPS)
    sub(entry, "Type", type_code)
    sub(entry, "RecordRawClips", RECORD_RAW_CLIPS)
    sub(entry, "Enabled", ENABLED)
    sub(entry, "MotionThreshold", MOTION_THRESHOLD)
    if endpoint.mac_address:
        sub(entry, "MACAddress", endpoint.mac_address)


def emit_camera_hub_xml(devices: Iterable[Device]) -> str:
    """
    Build the CameraHub document for the cameras among ``devices``.

    Non-camera devices are ignored. Dual-lens cameras fan out per stream.
    """
    endpoints = [e for d in devices if d.is_camera for e in camera_endpoints(d)]

    root = ET.Element(ROOT)
    cameras = sub(root, "Cameras")
    fli_cameras = sub(root, "FLICameras")
    for endpoint in endpoints:
        _camera_entry(cameras, "Camera", endpoint, camera_type_code(endpoint.sub_kind))
        if endpoint.is_fli:
            _camera_entry(fli_cameras, "CameraConfig", endpoint, "FLI")
    return to_document(root, DECLARATION)


def parse_camera_hub_xml(text: str, strict: bool = False) -> List[Device]:
    """
    Parse the Cameras section of a CameraHub document.

    Returns bullet cameras pending placement; ids are 0 and get assigned
    when merged into a SiteModel. The FLICameras section repeats the same
    cameras and is not read.
    """
    root = load_root(text, ROOT_ALIASES, "CameraHub", strict)
    if root is None:
        return []

    devices = []
    for entry in root.iterfind("Cameras/Camera"):
        name = child_text(entry, "Name")
        if not name:
            continue
        url = child_text(entry, "RTSPUrl")
        ip_address = extract_ip(url)
        port = extract_port(url)
        sub_kind = camera_type_from_code(child_text(entry, "Type"))
        devices.append(Device(
            id=0,
            name=name,
            details=CameraDetails(
                sub_kind=sub_kind,
                hardware_type=HARDWARE_BULLET,
                stream1=Stream(sub_kind=sub_kind, ip_address=ip_address, port=port, external_url=url),
            ),
            ip_address=ip_address,
            port=port,
            mac_address=child_text(entry, "MACAddress"),
            external_url=url,
        ))
    logging.debug(f"Parsed {len(devices)} camera(s) from CameraHub document")
    return devices
