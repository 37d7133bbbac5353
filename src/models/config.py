"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class PathsConfig:
    """
    Where logical config paths land on disk.

    Relative file paths are resolved against ``root``.
    """
    root: str = "output/ensight"
    camera_hub: str = "CameraHub/CameraHub-config.xml"
    devices_config: str = "EPIC/Config/DevicesConfig.xml"
    fli_dir: str = "FLI/Config"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PathsConfig":
        return cls(
            root=d.get("root", "output/ensight"),
            camera_hub=d.get("camera_hub", "CameraHub/CameraHub-config.xml"),
            devices_config=d.get("devices_config", "EPIC/Config/DevicesConfig.xml"),
            fli_dir=d.get("fli_dir", "FLI/Config"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "camera_hub": self.camera_hub,
            "devices_config": self.devices_config,
            "fli_dir": self.fli_dir,
        }


@dataclass
class WebConfig:
    """Admin API server configuration."""
    host: str = "127.0.0.1"
    port: int = 8080

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            host=d.get("host", "127.0.0.1"),
            port=d.get("port", 8080),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    paths: PathsConfig = field(default_factory=PathsConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/site_console.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            paths=PathsConfig.from_dict(d.get("paths", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/site_console.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "paths": self.paths.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
