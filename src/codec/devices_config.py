"""
DevicesConfig document (one per site).

One ``Device`` per concrete network endpoint, children in this order:
Name, IPAddress, Port, Type, then MACAddress (cameras and signs) or the
sensor fields SensorID, SerialAddress, ParkingType,
TempParkingTimeMinutes and, for nwave controllers, ControllerKey.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Iterable, List, Optional

from models.device import (
    CameraDetails,
    CameraType,
    Device,
    HARDWARE_BULLET,
    SensorDetails,
    SensorType,
    SignDetails,
    SignType,
    Stream,
)

from .endpoints import camera_endpoints
from .xml_utils import child_text, load_root, report_mismatch, sub, to_document

DECLARATION = '<?xml version="1.0"?>'
ROOT = "Devices"

TYPE_CAMERA = "CAMERA"
TYPE_SIGN = "SIGNCONTROLLER"
TYPE_SENSOR_CONTROLLER = "SENSORCONTROLLER"
TYPE_SENSOR = "SENSOR"

DEFAULT_SIGN_PORT = "10001"
DEFAULT_SENSOR_PORT = ""


def device_type_code(device: Device) -> str:
    if device.is_camera:
        return TYPE_CAMERA
    if device.is_sign:
        return TYPE_SIGN
    if device.details.sub_kind == SensorType.NWAVE:
        return TYPE_SENSOR_CONTROLLER
    return TYPE_SENSOR


def _entry(parent: ET.Element, name: str, ip_address: str, port: str, type_code: str) -> ET.Element:
    entry = sub(parent, "Device")
    sub(entry, "Name", name)
    sub(entry, "IPAddress", ip_address)
    sub(entry, "Port", port)
    sub(entry, "Type", type_code)
    return entry


def _sensor_fields(entry: ET.Element, details: SensorDetails) -> None:
    if details.sensor_id:
        sub(entry, "SensorID", details.sensor_id)
    if details.serial_address:
        sub(entry, "SerialAddress", details.serial_address)
    if details.parking_type:
        sub(entry, "ParkingType", details.parking_type.upper())
    if details.temp_parking_time_minutes:
        sub(entry, "TempParkingTimeMinutes", details.temp_parking_time_minutes)
    if details.controller_key and details.sub_kind == SensorType.NWAVE:
        sub(entry, "ControllerKey", details.controller_key)


def emit_devices_config_xml(devices: Iterable[Device]) -> str:
    """Build the DevicesConfig document for ``devices`` in the given order."""
    root = ET.Element(ROOT)
    for device in devices:
        if device.is_camera:
            for endpoint in camera_endpoints(device):
                entry = _entry(root, endpoint.name, endpoint.ip_address, endpoint.port, TYPE_CAMERA)
                if endpoint.mac_address:
                    sub(entry, "MACAddress", endpoint.mac_address)
        elif device.is_sign:
            entry = _entry(root, device.name, device.ip_address,
                           device.port or DEFAULT_SIGN_PORT, TYPE_SIGN)
            if device.mac_address:
                sub(entry, "MACAddress", device.mac_address)
        else:
            entry = _entry(root, device.name, device.ip_address,
                           device.port or DEFAULT_SENSOR_PORT, device_type_code(device))
            _sensor_fields(entry, device.details)
    return to_document(root, DECLARATION)


def _int(text: str) -> int:
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return 0


def _device_from_entry(entry: ET.Element) -> Optional[Device]:
    name = child_text(entry, "Name")
    type_code = child_text(entry, "Type")
    ip_address = child_text(entry, "IPAddress")
    port = child_text(entry, "Port")
    mac_address = child_text(entry, "MACAddress")

    if type_code == TYPE_CAMERA:
        details = CameraDetails(
            sub_kind=CameraType.FLI,
            hardware_type=HARDWARE_BULLET,
            stream1=Stream(sub_kind=CameraType.FLI, ip_address=ip_address, port=port),
        )
    elif type_code == TYPE_SIGN:
        details = SignDetails(sub_kind=SignType.LED)
    elif type_code in (TYPE_SENSOR_CONTROLLER, TYPE_SENSOR):
        details = SensorDetails(
            sub_kind=SensorType.NWAVE if type_code == TYPE_SENSOR_CONTROLLER else SensorType.SPACE,
            sensor_id=child_text(entry, "SensorID"),
            serial_address=child_text(entry, "SerialAddress"),
            parking_type=child_text(entry, "ParkingType").lower(),
            temp_parking_time_minutes=_int(child_text(entry, "TempParkingTimeMinutes")),
            controller_key=child_text(entry, "ControllerKey"),
        )
    else:
        report_mismatch(f"DevicesConfig: skipping {name or '<unnamed>'} with unknown Type {type_code!r}")
        return None

    return Device(
        id=0,
        name=name,
        details=details,
        ip_address=ip_address,
        port=port,
        mac_address=mac_address,
    )


def parse_devices_config_xml(text: str, strict: bool = False) -> List[Device]:
    """
    Parse a DevicesConfig document into devices pending placement.

    Entries without a name or with an unknown Type are skipped.
    """
    root = load_root(text, (ROOT,), "DevicesConfig", strict)
    if root is None:
        return []

    devices = []
    for entry in root.iterfind("Device"):
        if not child_text(entry, "Name"):
            continue
        device = _device_from_entry(entry)
        if device is not None:
            devices.append(device)
    logging.debug(f"Parsed {len(devices)} device(s) from DevicesConfig document")
    return devices
