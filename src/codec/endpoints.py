"""
Camera fan-out into concrete network endpoints.

A bullet camera is one endpoint named after the device. A dual-lens
camera is one endpoint per configured stream, named ``<name>-S1`` and
``<name>-S2``; a stream with an empty IP produces no endpoint. Every
emitter and the dispatcher go through this module so the three
documents agree on names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from models.device import CameraType, Device

from .rtsp import DEFAULT_RTSP_PORT, build_rtsp_url


@dataclass(frozen=True)
class CameraEndpoint:
    name: str
    ip_address: str
    port: str
    rtsp_url: str
    sub_kind: CameraType
    mac_address: str = ""
    stream_number: Optional[int] = None

    @property
    def is_fli(self) -> bool:
        return self.sub_kind == CameraType.FLI


def stream_name(device_name: str, number: int) -> str:
    return f"{device_name}-S{number}"


def camera_endpoints(device: Device) -> List[CameraEndpoint]:
    """Endpoints of a camera device; empty for signs and sensors."""
    if not device.is_camera:
        return []
    details = device.details

    if details.is_dual_lens:
        endpoints = []
        for number, stream in details.streams():
            if stream is None or not stream.ip_address:
                continue
            port = stream.port or DEFAULT_RTSP_PORT
            endpoints.append(CameraEndpoint(
                name=stream_name(device.name, number),
                ip_address=stream.ip_address,
                port=port,
                rtsp_url=stream.external_url or build_rtsp_url(stream.ip_address, port),
                sub_kind=stream.sub_kind,
                mac_address=device.mac_address,
                stream_number=number,
            ))
        return endpoints

    stream = details.stream1
    ip_address = (stream.ip_address if stream else "") or device.ip_address
    port = (stream.port if stream else "") or device.port or DEFAULT_RTSP_PORT
    url = (stream.external_url if stream else "") or device.external_url
    return [CameraEndpoint(
        name=device.name,
        ip_address=ip_address,
        port=port,
        rtsp_url=url or build_rtsp_url(ip_address, port),
        sub_kind=details.sub_kind,
        mac_address=device.mac_address,
    )]


def fli_endpoints(device: Device) -> List[CameraEndpoint]:
    """Endpoints that get their own FLI plugin config."""
    return [e for e in camera_endpoints(device) if e.is_fli]
