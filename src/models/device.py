"""
Device models: a tagged variant on kind x subKind.

A Device carries the network identity and placement shared by every
device, plus one details record (CameraDetails, SignDetails or
SensorDetails) holding the kind-specific fields. The details type is the
tag: ``Device.kind`` and ``Device.sub_kind`` are derived from it.

Fields the XML schemas do not carry (stream rotation, flow destination,
sensor group membership, sign display mapping) live here and are dropped
by the codec on emission.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class DeviceKind(str, Enum):
    CAMERA = "camera"
    SIGN = "sign"
    SENSOR = "sensor"


class CameraType(str, Enum):
    FLI = "fli"
    LPR = "lpr"
    PEOPLE = "people"


class SignType(str, Enum):
    LED = "led"
    STATIC = "static"
    DESIGNABLE = "designable"


class SensorType(str, Enum):
    NWAVE = "nwave"
    PARKSOL = "parksol"
    PROCO = "proco"
    ENSIGHT = "ensight"
    SPACE = "space"


HARDWARE_BULLET = "bullet"
HARDWARE_DUAL_LENS = "dual-lens"

FLOW_GARAGE_ENTRY = "garage-entry"
FLOW_GARAGE_EXIT = "garage-exit"

# Either a literal garage flow or a peer Level id.
FlowDestination = Union[str, int]


@dataclass(frozen=True)
class Stream:
    """
    One video stream of a camera.

    Attributes:
        sub_kind: Detection role of this stream (fli/lpr/people).
        ip_address: Stream network address; empty means not configured.
        port: RTSP port as text; empty falls back to 554 on emission.
        external_url: Explicit RTSP URL, wins over synthesis.
        direction: "in" or "out".
        rotation: Facing in degrees on the level image.
        flow_destination: "garage-entry", "garage-exit" or a Level id.
    """
    sub_kind: CameraType = CameraType.FLI
    ip_address: str = ""
    port: str = ""
    external_url: str = ""
    direction: str = "in"
    rotation: float = 0
    flow_destination: FlowDestination = FLOW_GARAGE_ENTRY


@dataclass(frozen=True)
class CameraDetails:
    sub_kind: CameraType = CameraType.FLI
    hardware_type: str = HARDWARE_BULLET
    stream1: Optional[Stream] = None
    stream2: Optional[Stream] = None
    resolution: str = ""
    server_name: str = ""
    status: str = ""
    visible_name: str = ""
    detection_type: str = ""
    back_of_car_is: str = ""
    is_entry_exit_camera: bool = False
    dependent_camera_name: str = ""
    direction: str = "in"
    rotation: float = 0
    flow_destination: FlowDestination = FLOW_GARAGE_ENTRY

    @property
    def is_dual_lens(self) -> bool:
        return self.hardware_type == HARDWARE_DUAL_LENS

    def streams(self) -> Tuple[Tuple[int, Optional[Stream]], ...]:
        """Numbered streams, (1, stream1) then (2, stream2)."""
        return ((1, self.stream1), (2, self.stream2))


@dataclass(frozen=True)
class SignDetails:
    sub_kind: SignType = SignType.STATIC
    serial_address: str = ""
    display_protocol: str = ""
    display_map: str = ""
    display_group_name: str = ""
    visible_name: str = ""
    controller_name: str = ""
    server_name: str = ""
    hardware_type: str = ""
    keep_level_counts_separate: bool = False
    position_name: str = ""
    level_display_name: str = ""
    preview_url: str = ""
    display_mapping: Tuple[int, ...] = ()
    override_state: str = "auto"
    display_status: str = ""


@dataclass(frozen=True)
class SensorMember:
    """An in-ground space sensor belonging to a sensor group."""
    sensor_id: str
    name: str
    parking_type: str = ""
    temp_parking_time_minutes: int = 0


@dataclass(frozen=True)
class SensorDetails:
    sub_kind: SensorType = SensorType.NWAVE
    sensor_protocol: str = ""
    group_id: str = ""
    controller_address: str = ""
    controller_key: str = ""
    parent_level: str = ""
    sensors: Tuple[SensorMember, ...] = ()
    sensor_id: str = ""
    serial_address: str = ""
    spot_number: str = ""
    parking_type: str = ""
    temp_parking_time_minutes: int = 0


DeviceDetails = Union[CameraDetails, SignDetails, SensorDetails]

_KIND_BY_DETAILS = {
    CameraDetails: DeviceKind.CAMERA,
    SignDetails: DeviceKind.SIGN,
    SensorDetails: DeviceKind.SENSOR,
}


@dataclass(frozen=True)
class Device:
    """
    A network endpoint placed (or pending placement) on a Level.

    Attributes:
        id: Site-unique id assigned by the owning SiteModel.
        name: Device name; also used in FLI config file names.
        details: Kind-specific fields; its type is the device kind.
        pending_placement: True while the device has no (x, y).
        server_id: Optional reference to a Server of the same garage.
    """
    id: int
    name: str
    details: DeviceDetails = field(default_factory=CameraDetails)
    ip_address: str = ""
    port: str = ""
    mac_address: str = ""
    external_url: str = ""
    x: Optional[float] = None
    y: Optional[float] = None
    pending_placement: bool = True
    server_id: Optional[int] = None

    @property
    def kind(self) -> DeviceKind:
        return _KIND_BY_DETAILS[type(self.details)]

    @property
    def sub_kind(self) -> str:
        return self.details.sub_kind.value

    @property
    def is_camera(self) -> bool:
        return isinstance(self.details, CameraDetails)

    @property
    def is_sign(self) -> bool:
        return isinstance(self.details, SignDetails)

    @property
    def is_sensor(self) -> bool:
        return isinstance(self.details, SensorDetails)

    def with_details(self, **changes: Any) -> "Device":
        """Return a copy with the given details fields replaced."""
        return replace(self, details=replace(self.details, **changes))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        details = asdict(self.details)
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "sub_kind": self.sub_kind,
            "ip_address": self.ip_address,
            "port": self.port,
            "mac_address": self.mac_address,
            "external_url": self.external_url,
            "x": self.x,
            "y": self.y,
            "pending_placement": self.pending_placement,
            "server_id": self.server_id,
            "details": _jsonable(details),
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def camera_type_from_detection(detection_type: str) -> CameraType:
    """Map a workbook DetectionType to a camera subKind (default fli)."""
    value = (detection_type or "").strip().upper()
    if value == "LPR":
        return CameraType.LPR
    if value in ("PEOPLE", "PEOPLECOUNTING"):
        return CameraType.PEOPLE
    return CameraType.FLI


def sign_type_from_protocol(protocol: str) -> SignType:
    """Map a workbook DisplayProtocol to a sign subKind (default static)."""
    value = (protocol or "").strip().upper()
    if value == "LED":
        return SignType.LED
    if value == "DESIGNABLE":
        return SignType.DESIGNABLE
    return SignType.STATIC


def sensor_type_from_protocol(protocol: str) -> SensorType:
    """Map a workbook SensorProtocol to a sensor subKind (default nwave)."""
    value = (protocol or "").strip().lower()
    if value in ("parksol", "parksolution"):
        return SensorType.PARKSOL
    if value == "proco":
        return SensorType.PROCO
    if value == "ensight":
        return SensorType.ENSIGHT
    return SensorType.NWAVE
