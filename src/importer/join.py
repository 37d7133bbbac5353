"""
Workbook join: sheet rows -> garages, levels and devices.

The builder walks ``Garages`` once. For each garage it filters
``GarageLevels`` and, per (garage, level) pair, synthesises devices in a
fixed order:

    1. cameras assigned through FLICameras
    2. cameras assigned through the level's server
    3. sensor groups with their member sensors
    4. display controllers listed in DisplayLevels

Within a level, duplicate device names are suppressed (first wins).
Rows that point at missing records are skipped silently; the RawData
echo still shows them.
"""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from typing import Dict, Iterator, List, Optional, Set, Tuple

from models.device import (
    CameraDetails,
    Device,
    SensorDetails,
    SensorMember,
    SignDetails,
    camera_type_from_detection,
    sensor_type_from_protocol,
    sign_type_from_protocol,
)
from models.errors import LimitExceeded
from models.site import Garage, Level, LevelConfig, Server, ServerType

from .coercion import as_bool, as_int, as_num, as_str, display
from .workbook import ImportLimits, RawData, Row

DEFAULT_MAXIMUM_OCCUPANCY = 100


def _index_first(rows: List[Row], column: str) -> Dict[str, Row]:
    """Map the column value to the first row carrying it."""
    index: Dict[str, Row] = {}
    for row in rows:
        index.setdefault(as_str(row.get(column)), row)
    return index


def _group_by(rows: List[Row], *columns: str) -> Dict[Tuple[str, ...], List[Row]]:
    groups: Dict[Tuple[str, ...], List[Row]] = defaultdict(list)
    for row in rows:
        groups[tuple(as_str(row.get(c)) for c in columns)].append(row)
    return groups


def level_config_from_row(row: Row) -> LevelConfig:
    """Flatten a GarageLevels row into a LevelConfig."""
    return LevelConfig(
        server=as_str(row.get("Server")),
        level_type=display(row.get("LevelType")),
        visible_on_portal=as_bool(row.get("VisibleOnPortal")),
        maximum_occupancy=as_num(row.get("MaximumOccupancy"), DEFAULT_MAXIMUM_OCCUPANCY),
        auto_reset_counts_enabled=as_bool(row.get("AutoResetCountsEnabled")),
        auto_reset_count_value=as_num(row.get("AutoResetCountValue")),
        auto_reset_count_time=display(row.get("AutoResetCountTime")),
        force_full_vacancy_threshold=as_num(row.get("ForceFullVacancyThreshold")),
        vehicle_transit_threshold=as_num(row.get("VehicleTransitThreshold")),
        vehicle_transit_threshold_ttl_seconds=as_num(row.get("VehicleTransitThresholdTTLSeconds")),
        show_full_message=as_bool(row.get("ShowFullMessage")),
        show_full_message_red=as_bool(row.get("ShowFullMessageRed")),
        portal_display_ordinal=as_num(row.get("PortalDisplayOrdinal")),
        sign_display_ordinal=as_num(row.get("SignDisplayOrdinal")),
        portal_rendering=display(row.get("PortalRendering")),
        vehicle_roles_allowed=display(row.get("VehicleRolesAllowed")),
    )


class _GarageServers:
    """Server records of one garage, created on first reference by name."""

    def __init__(self, ids: Iterator[int]):
        self._ids = ids
        self._by_name: Dict[str, Server] = {}

    def resolve(self, name: str, server_type: ServerType) -> Optional[int]:
        if not name:
            return None
        server = self._by_name.get(name)
        if server is None:
            server = Server(id=next(self._ids), name=name, server_type=server_type)
            self._by_name[name] = server
        return server.id

    def records(self) -> Tuple[Server, ...]:
        return tuple(self._by_name.values())


class SiteBuilder:
    """
    Builds frozen Garage records from RawData.

    Ids come from one counter shared by every entity; ``next_id`` after
    ``build()`` is the first unused id, handed to the SiteModel.
    """

    def __init__(self, raw: RawData, limits: ImportLimits = ImportLimits()):
        self._raw = raw
        self._limits = limits
        self._ids = itertools.count(1)
        self._device_count = 0

        self._levels_by_garage = _group_by(raw.garage_levels, "Garage")
        self._fli_by_level = _group_by(raw.fli_cameras, "Garage", "Level")
        self._groups_by_level = _group_by(raw.sensor_groups, "Garage", "Level")
        self._displays_by_level = _group_by(raw.display_levels, "Garage", "Level")
        self._sensors_by_group = _group_by(raw.sensors, "SensorGroupID")
        self._cameras_by_name = _index_first(raw.cameras, "Name")
        self._controllers_by_name = _index_first(raw.display_controllers, "DisplayName")
        self._fli_camera_names: Set[str] = {as_str(r.get("CameraName")) for r in raw.fli_cameras}

    @property
    def next_id(self) -> int:
        return next(self._ids)

    @property
    def device_count(self) -> int:
        return self._device_count

    def build(self) -> List[Garage]:
        return [self._garage(row) for row in self._raw.garages]

    def _garage(self, row: Row) -> Garage:
        garage_name = as_str(row.get("Garage"))
        garage_id = next(self._ids)
        servers = _GarageServers(self._ids)
        camera_levels: Dict[str, str] = {}

        levels = []
        for level_row in self._levels_by_garage.get((garage_name,), []):
            levels.append(self._level(garage_name, level_row, servers, camera_levels))

        return Garage(
            id=garage_id,
            name=display(row.get("VisibleGarageName")) or display(garage_name),
            internal_name=garage_name,
            stage=display(row.get("Stage")),
            levels=tuple(levels),
            servers=servers.records(),
        )

    def _level(self, garage_name: str, row: Row, servers: _GarageServers,
               camera_levels: Dict[str, str]) -> Level:
        level_name = as_str(row.get("Level"))
        level_id = next(self._ids)
        config = level_config_from_row(row)
        servers.resolve(config.server, ServerType.RECORDING)

        devices: List[Device] = []
        names: Set[str] = set()

        def emit(device: Device) -> None:
            if device.name in names:
                return
            self._device_count += 1
            if self._device_count > self._limits.max_devices:
                raise LimitExceeded(self._limits.max_devices, self._device_count)
            names.add(device.name)
            devices.append(device)

        key = (garage_name, level_name)

        for fli_row in self._fli_by_level.get(key, []):
            camera_row = self._cameras_by_name.get(as_str(fli_row.get("CameraName")))
            if camera_row is not None:
                emit(self._camera(camera_row, servers, fli_row))

        for camera_row in self._raw.cameras:
            name = as_str(camera_row.get("Name"))
            if as_str(camera_row.get("Server")) != config.server:
                continue
            if name in names or name in self._fli_camera_names:
                continue
            emit(self._camera(camera_row, servers))

        for group_row in self._groups_by_level.get(key, []):
            group_id = as_str(group_row.get("GroupID"))
            members = self._sensors_by_group.get((group_id,), [])
            if members:
                emit(self._sensor_group(group_row, members))

        for display_row in self._displays_by_level.get(key, []):
            controller_row = self._controllers_by_name.get(as_str(display_row.get("DisplayName")))
            if controller_row is not None:
                emit(self._sign(controller_row, display_row, servers))

        for device in devices:
            if device.is_camera:
                first_level = camera_levels.setdefault(device.name, level_name)
                if first_level != level_name:
                    logging.warning(
                        f"Camera {device.name} of garage {garage_name} appears on levels "
                        f"{first_level} and {level_name}"
                    )

        return Level(
            id=level_id,
            name=display(row.get("VisibleLevelName")) or display(level_name),
            internal_name=level_name,
            total_spots=config.maximum_occupancy,
            config=config,
            devices=tuple(devices),
        )

    def _camera(self, row: Row, servers: _GarageServers, fli_row: Optional[Row] = None) -> Device:
        detection_type = as_str(row.get("DetectionType"))
        server_name = as_str(row.get("Server"))
        fli_row = fli_row or {}
        return Device(
            id=next(self._ids),
            name=as_str(row.get("Name")),
            details=CameraDetails(
                sub_kind=camera_type_from_detection(detection_type),
                resolution=as_str(row.get("Resolution")),
                server_name=server_name,
                status=display(row.get("Status")),
                visible_name=display(row.get("VisibleCameraName")),
                detection_type=detection_type,
                back_of_car_is=as_str(fli_row.get("BackOfCarIs")),
                is_entry_exit_camera=as_bool(fli_row.get("IsEntryExitCamera")),
                dependent_camera_name=as_str(fli_row.get("DependentCameraName")),
            ),
            ip_address=as_str(row.get("IPAddress")),
            port=as_str(row.get("Port")),
            external_url=as_str(row.get("RTSPURL")),
            server_id=servers.resolve(server_name, ServerType.RECORDING),
        )

    def _sensor_group(self, row: Row, members: List[Row]) -> Device:
        group_id = as_str(row.get("GroupID"))
        protocol = as_str(row.get("SensorProtocol"))
        controller_address = as_str(row.get("ControllerAddress"))
        return Device(
            id=next(self._ids),
            name=f"SensorGroup-{group_id}",
            details=SensorDetails(
                sub_kind=sensor_type_from_protocol(protocol),
                sensor_protocol=protocol,
                group_id=group_id,
                controller_address=controller_address,
                controller_key=as_str(row.get("ControllerKey")),
                parent_level=as_str(row.get("ParentLevel")),
                sensors=tuple(
                    SensorMember(
                        sensor_id=as_str(m.get("SensorId")),
                        name=display(m.get("SensorName")),
                        parking_type=as_str(m.get("ParkingType")),
                        temp_parking_time_minutes=as_int(m.get("TempParkingTimeInMinutes")),
                    )
                    for m in members
                ),
            ),
            ip_address=controller_address,
        )

    def _sign(self, row: Row, display_row: Row, servers: _GarageServers) -> Device:
        protocol = as_str(row.get("DisplayProtocol"))
        server_name = as_str(row.get("Server"))
        return Device(
            id=next(self._ids),
            name=as_str(row.get("DisplayName")),
            details=SignDetails(
                sub_kind=sign_type_from_protocol(protocol),
                serial_address=as_str(row.get("SerialAddress")),
                display_protocol=protocol,
                display_map=as_str(row.get("DisplayMap")),
                display_group_name=display(row.get("DisplayGroupName")),
                visible_name=display(row.get("VisibleDisplayName")),
                controller_name=display(row.get("DisplayControllerName")),
                server_name=server_name,
                hardware_type=as_str(row.get("InsertHardwareType")),
                keep_level_counts_separate=as_bool(row.get("KeepLevelCountsSeparate")),
                position_name=display(display_row.get("PositionName")),
                level_display_name=display(display_row.get("LevelName")),
            ),
            ip_address=as_str(row.get("IPAddress")),
            port=as_str(row.get("Port")),
            server_id=servers.resolve(server_name, ServerType.EDGE),
        )
