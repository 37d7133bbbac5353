"""
Config Dispatcher and host capabilities.
"""

from .dispatcher import (
    CAMERA_HUB,
    DEVICES_CONFIG,
    FLI_PREFIX,
    ExportFile,
    bootstrap_from_install,
    config_file_paths,
    export_device,
    export_site,
    fli_name,
    fli_path,
    plan_device_export,
    plan_site_export,
)
from .host import DirectoryReader, DirectoryWriter, MemoryWriter, PathLayout

__all__ = [
    "CAMERA_HUB",
    "DEVICES_CONFIG",
    "FLI_PREFIX",
    "ExportFile",
    "bootstrap_from_install",
    "config_file_paths",
    "export_device",
    "export_site",
    "fli_name",
    "fli_path",
    "plan_device_export",
    "plan_site_export",
    "DirectoryReader",
    "DirectoryWriter",
    "MemoryWriter",
    "PathLayout",
]
