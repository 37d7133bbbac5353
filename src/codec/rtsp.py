"""
RTSP URL helpers.

Cameras without an explicit URL get one synthesised from their address
with the fixed field credentials. Parsers go the other way and recover
the address from ``@<ip>:<port>/``.
"""

import re

DEFAULT_RTSP_PORT = "554"
DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "Schneider1!"
MEDIA_PATH = "/0/onvif/profile2/media.smp"

_IP_RE = re.compile(r"@([\d.]+):")
_PORT_RE = re.compile(r":(\d+)/")


def build_rtsp_url(ip_address: str, port: str = DEFAULT_RTSP_PORT,
                   username: str = DEFAULT_USERNAME, password: str = DEFAULT_PASSWORD) -> str:
    """rtsp://admin:Schneider1!@<ip>:<port>/0/onvif/profile2/media.smp"""
    return f"rtsp://{username}:{password}@{ip_address}:{port or DEFAULT_RTSP_PORT}{MEDIA_PATH}"


def extract_ip(url: str) -> str:
    if not url:
        return ""
    match = _IP_RE.search(url)
    return match.group(1) if match else ""


def extract_port(url: str) -> str:
    if not url:
        return DEFAULT_RTSP_PORT
    match = _PORT_RE.search(url)
    return match.group(1) if match else DEFAULT_RTSP_PORT
