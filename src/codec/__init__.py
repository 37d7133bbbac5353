"""
XML Codec: emitters and parsers for the three field-service documents.

- CameraHub (per site): camera recorder stream list.
- DevicesConfig (per site): every network endpoint.
- FLI plugin config (per FLI camera endpoint).

Fields the schemas do not carry (stream rotation, flow destination,
sensor group membership, sign display mapping) are dropped on emission
and come back as defaults when parsed.
"""

from .camerahub import emit_camera_hub_xml, parse_camera_hub_xml
from .devices_config import device_type_code, emit_devices_config_xml, parse_devices_config_xml
from .endpoints import CameraEndpoint, camera_endpoints, fli_endpoints, stream_name
from .fli_config import emit_fli_config_xml, parse_fli_config_xml
from .rtsp import build_rtsp_url, extract_ip, extract_port

__all__ = [
    "emit_camera_hub_xml",
    "parse_camera_hub_xml",
    "emit_devices_config_xml",
    "parse_devices_config_xml",
    "device_type_code",
    "emit_fli_config_xml",
    "parse_fli_config_xml",
    "CameraEndpoint",
    "camera_endpoints",
    "fli_endpoints",
    "stream_name",
    "build_rtsp_url",
    "extract_ip",
    "extract_port",
]
