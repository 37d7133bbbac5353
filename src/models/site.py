"""
Site entity models: garages, levels, servers and the per-level config.

Entities are frozen; collections inside them are tuples. The owning
SiteModel replaces entities along the modified path, so untouched
subtrees keep their identity.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .device import Device


class ServerType(str, Enum):
    RECORDING = "Recording"
    PROCESSING = "Processing"
    EDGE = "Edge"
    MANAGEMENT = "Management"
    STORAGE = "Storage"


@dataclass(frozen=True)
class LevelConfig:
    """
    Flattened GarageLevels row. Copied verbatim from the workbook.
    """
    server: str = ""
    level_type: str = ""
    visible_on_portal: bool = False
    maximum_occupancy: float = 100
    auto_reset_counts_enabled: bool = False
    auto_reset_count_value: float = 0
    auto_reset_count_time: str = ""
    force_full_vacancy_threshold: float = 0
    vehicle_transit_threshold: float = 0
    vehicle_transit_threshold_ttl_seconds: float = 0
    show_full_message: bool = False
    show_full_message_red: bool = False
    portal_display_ordinal: float = 0
    sign_display_ordinal: float = 0
    portal_rendering: str = ""
    vehicle_roles_allowed: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "server": self.server,
            "level_type": self.level_type,
            "visible_on_portal": self.visible_on_portal,
            "maximum_occupancy": self.maximum_occupancy,
            "auto_reset_counts_enabled": self.auto_reset_counts_enabled,
            "auto_reset_count_value": self.auto_reset_count_value,
            "auto_reset_count_time": self.auto_reset_count_time,
            "force_full_vacancy_threshold": self.force_full_vacancy_threshold,
            "vehicle_transit_threshold": self.vehicle_transit_threshold,
            "vehicle_transit_threshold_ttl_seconds": self.vehicle_transit_threshold_ttl_seconds,
            "show_full_message": self.show_full_message,
            "show_full_message_red": self.show_full_message_red,
            "portal_display_ordinal": self.portal_display_ordinal,
            "sign_display_ordinal": self.sign_display_ordinal,
            "portal_rendering": self.portal_rendering,
            "vehicle_roles_allowed": self.vehicle_roles_allowed,
        }


@dataclass(frozen=True)
class Server:
    id: int
    name: str
    server_type: ServerType = ServerType.RECORDING
    os: str = ""
    ip_address: str = ""
    username: str = ""
    password: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        # Password stays out of API payloads.
        return {
            "id": self.id,
            "name": self.name,
            "server_type": self.server_type.value,
            "os": self.os,
            "ip_address": self.ip_address,
            "username": self.username,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Contact:
    id: int
    name: str = ""
    title: str = ""
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class QuickLink:
    id: int
    name: str = ""
    url: str = ""
    icon: str = ""


@dataclass(frozen=True)
class Level:
    """
    A parking level of one garage.

    Attributes:
        id: Site-unique id.
        name: Visible level name.
        internal_name: Workbook join key (GarageLevels.Level).
        total_spots: Capacity; must be >= ev_spots + ada_spots.
        config: Flattened workbook level configuration.
        devices: Devices owned by this level, in import order.
    """
    id: int
    name: str
    internal_name: str = ""
    total_spots: float = 0
    ev_spots: float = 0
    ada_spots: float = 0
    background_image: Optional[str] = None
    config: LevelConfig = field(default_factory=LevelConfig)
    devices: Tuple[Device, ...] = ()

    def find_device(self, device_id: int) -> Optional[Device]:
        for device in self.devices:
            if device.id == device_id:
                return device
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "internal_name": self.internal_name,
            "total_spots": self.total_spots,
            "ev_spots": self.ev_spots,
            "ada_spots": self.ada_spots,
            "background_image": self.background_image,
            "config": self.config.to_dict(),
            "devices": [d.to_dict() for d in self.devices],
        }


@dataclass(frozen=True)
class Garage:
    id: int
    name: str
    internal_name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    cover_image: str = ""
    stage: str = ""
    levels: Tuple[Level, ...] = ()
    servers: Tuple[Server, ...] = ()
    contacts: Tuple[Contact, ...] = ()
    quick_links: Tuple[QuickLink, ...] = ()

    def find_level(self, level_id: int) -> Optional[Level]:
        for level in self.levels:
            if level.id == level_id:
                return level
        return None

    def find_server(self, server_id: int) -> Optional[Server]:
        for server in self.servers:
            if server.id == server_id:
                return server
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "internal_name": self.internal_name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "cover_image": self.cover_image,
            "stage": self.stage,
            "levels": [lvl.to_dict() for lvl in self.levels],
            "servers": [s.to_dict() for s in self.servers],
            "contacts": [asdict(c) for c in self.contacts],
            "quick_links": [asdict(q) for q in self.quick_links],
        }


@dataclass(frozen=True)
class ChangeEntry:
    """A timestamped record of one model mutation."""
    timestamp: datetime
    action: str
    entity_id: Optional[int] = None
    detail: str = ""


@dataclass(frozen=True)
class Finding:
    """
    A non-fatal validation finding.

    Attributes:
        code: Stable finding code (e.g. "spot-mismatch").
        entity_id: Id of the garage, level or device concerned.
        message: Human-readable description.
    """
    code: str
    entity_id: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "entity_id": self.entity_id, "message": self.message}
