"""
FLI plugin config (one document per FLI camera endpoint).

The document names the camera and carries a fixed default FLIConfig
block; the field service tunes it on site afterwards.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, List, Optional, Sequence, Tuple

from models.device import CameraDetails, CameraType, Device

from .xml_utils import child_text, load_root, sub, to_document

DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'
ROOT = "PluginConfig"

NAMESPACES = {
    "xmlns:xsi": "http://www.w3.org/2001/XMLSchema-instance",
    "xmlns:xsd": "http://www.w3.org/2001/XMLSchema",
}

Fields = Sequence[Tuple[str, Any]]

# Element order matters to the plugin's deserializer.
PLUGIN_DEFAULTS: Fields = (
    ("EnhancedVisuals", True),
    ("ResizeWidth", 0),
)

FLI_DEFAULTS: Fields = (
    ("DetectionInterval", 2),
    ("ConfidenceThreshold", 40),
    ("Frame", (("Width", 640), ("Height", 480))),
    ("ReportFLI", True),
    ("ROI", (
        ("Location", (("X", 0), ("Y", 0))),
        ("Size", (("Width", 640), ("Height", 480))),
        ("X", 0),
        ("Y", 0),
        ("Width", 640),
        ("Height", 480),
    )),
    ("MotionDetectionSensitivity", 40),
    ("ROEs", ()),
    ("CountLineUp", (("X1", 93), ("Y1", 202), ("X2", 555), ("Y2", 169))),
    ("CountLineDown", (("X1", 96), ("Y1", 215), ("X2", 562), ("Y2", 186))),
    ("LargeBoundingBoxMaxWidth", 0),
    ("LargeBoundingBoxMaxHeight", 0),
    ("MaximumAllowedCountedDistance", 140),
    ("MinimumSameObjectOverlap", 0.17),
    ("RecordCountFrames", False),
    ("RecordLowConfidenceFrames", False),
    ("DetectionBoxScale", 1),
    ("FramesReceivedTimeoutMs", 500),
    ("AllowTurnarounds", True),
    ("PersistDetections", True),
    ("MaxAllowedBoxJump", 200),
)


def _build(parent: ET.Element, fields: Fields) -> None:
    for tag, value in fields:
        if isinstance(value, tuple):
            _build(sub(parent, tag), value)
        else:
            sub(parent, tag, value)


def emit_fli_config_xml(camera: Device, name: Optional[str] = None) -> str:
    """
    Build the FLI plugin config for ``camera``.

    Args:
        camera: The camera device.
        name: Name override, used for dual-lens streams (``<name>-S<n>``).
    """
    root = ET.Element(ROOT, NAMESPACES)
    sub(root, "CameraName", name or camera.name)
    _build(root, PLUGIN_DEFAULTS)
    _build(sub(root, "FLIConfig"), FLI_DEFAULTS)
    return to_document(root, DECLARATION)


def parse_fli_config_xml(text: str, strict: bool = False) -> List[Device]:
    """Parse an FLI plugin config into the single FLI camera it names."""
    root = load_root(text, (ROOT,), "FLI plugin config", strict)
    if root is None:
        return []
    name = child_text(root, "CameraName")
    if not name:
        return []
    return [Device(id=0, name=name, details=CameraDetails(sub_kind=CameraType.FLI))]
