"""
Host-side capabilities: logical config paths <-> files on disk.

PathLayout maps ``cameraHub``, ``devicesConfig`` and ``fli:<name>`` to
files under an install root (by default the field-service layout
CameraHub/, EPIC/Config/ and FLI/Config/). DirectoryWriter and
DirectoryReader use it to satisfy the Writer and Reader capabilities.
MemoryWriter keeps files in a dict, for previews and tests.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from models.config import PathsConfig
from models.errors import BadInput

from .dispatcher import CAMERA_HUB, DEVICES_CONFIG, FLI_PREFIX, fli_name


@dataclass(frozen=True)
class PathLayout:
    root: Path
    camera_hub: str = "CameraHub/CameraHub-config.xml"
    devices_config: str = "EPIC/Config/DevicesConfig.xml"
    fli_dir: str = "FLI/Config"

    @classmethod
    def from_config(cls, paths: PathsConfig) -> "PathLayout":
        return cls(
            root=Path(paths.root),
            camera_hub=paths.camera_hub,
            devices_config=paths.devices_config,
            fli_dir=paths.fli_dir,
        )

    def resolve(self, logical_path: str) -> Path:
        """
        Map a logical path to a file path.

        Raises:
            BadInput: Unknown logical path, or an FLI camera name that is
                empty or would escape the FLI directory.
        """
        if logical_path == CAMERA_HUB:
            return self.root / self.camera_hub
        if logical_path == DEVICES_CONFIG:
            return self.root / self.devices_config
        if logical_path.startswith(FLI_PREFIX):
            name = fli_name(logical_path)
            if not name or "/" in name or "\\" in name or ".." in name:
                raise BadInput(f"unsafe FLI camera name: {name!r}")
            return self.root / self.fli_dir / f"{name}.xml"
        raise BadInput(f"unknown logical path: {logical_path}")

    def installed(self) -> Dict[str, Dict[str, object]]:
        """Existence of the per-site documents under the root."""
        result = {}
        for logical_path in (CAMERA_HUB, DEVICES_CONFIG):
            path = self.resolve(logical_path)
            result[logical_path] = {"path": str(path), "exists": path.exists()}
        return result


class DirectoryWriter:
    """Writer capability backed by a directory tree."""

    def __init__(self, layout: PathLayout):
        self.layout = layout

    def write(self, logical_path: str, content: str) -> None:
        path = self.layout.resolve(logical_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        logging.info(f"Wrote {logical_path} -> {path}")


class DirectoryReader:
    """Reader capability backed by a directory tree."""

    def __init__(self, layout: PathLayout):
        self.layout = layout

    def read_bytes(self, logical_path: str) -> bytes:
        path = self.layout.resolve(logical_path)
        if not path.is_file():
            raise FileNotFoundError(str(path))
        return path.read_bytes()


class MemoryWriter:
    """Collects written files; also readable, so it can stand in for an install."""

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = dict(files or {})

    def write(self, logical_path: str, content: str) -> None:
        self.files[logical_path] = content

    def read_bytes(self, logical_path: str) -> bytes:
        if logical_path not in self.files:
            raise FileNotFoundError(logical_path)
        return self.files[logical_path].encode("utf-8")
