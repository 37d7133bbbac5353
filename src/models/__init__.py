"""
Typed models for the site configuration console.

Site entities (garages, levels, servers), the device taxonomy, the error
taxonomy, host capabilities and the typed application config.
"""

from .device import (
    Device,
    DeviceKind,
    CameraType,
    SignType,
    SensorType,
    Stream,
    CameraDetails,
    SignDetails,
    SensorDetails,
    SensorMember,
    HARDWARE_BULLET,
    HARDWARE_DUAL_LENS,
    FLOW_GARAGE_ENTRY,
    FLOW_GARAGE_EXIT,
)
from .site import (
    Garage,
    Level,
    LevelConfig,
    Server,
    ServerType,
    Contact,
    QuickLink,
    ChangeEntry,
    Finding,
)
from .errors import ConsoleError, BadInput, LimitExceeded, InvalidOperation, UnknownEntity, SchemaMismatch
from .capabilities import Reader, Writer, Clock, SystemClock
from .config import Config, PathsConfig, WebConfig

__all__ = [
    # Devices
    "Device",
    "DeviceKind",
    "CameraType",
    "SignType",
    "SensorType",
    "Stream",
    "CameraDetails",
    "SignDetails",
    "SensorDetails",
    "SensorMember",
    "HARDWARE_BULLET",
    "HARDWARE_DUAL_LENS",
    "FLOW_GARAGE_ENTRY",
    "FLOW_GARAGE_EXIT",
    # Site
    "Garage",
    "Level",
    "LevelConfig",
    "Server",
    "ServerType",
    "Contact",
    "QuickLink",
    "ChangeEntry",
    "Finding",
    # Errors
    "ConsoleError",
    "BadInput",
    "LimitExceeded",
    "InvalidOperation",
    "UnknownEntity",
    "SchemaMismatch",
    # Host capabilities
    "Reader",
    "Writer",
    "Clock",
    "SystemClock",
    # Config
    "Config",
    "PathsConfig",
    "WebConfig",
]
