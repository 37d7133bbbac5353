"""
SiteModel: the authoritative in-memory site data.

The model owns a tuple of frozen Garage records. Every mutation helper
rebuilds only the entities on the path from the root to the modified
record (copy-on-write); sibling garages, levels and devices keep their
identity so that external views can detect change with ``is``.

All ids come from one monotonic counter per model, so ids are unique
across the whole site and a single ``lookup(id)`` resolves any entity.
The model performs no I/O.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from models.capabilities import Clock, SystemClock
from models.device import Device, DeviceDetails
from models.errors import InvalidOperation, UnknownEntity
from models.site import (
    ChangeEntry,
    Contact,
    Finding,
    Garage,
    Level,
    QuickLink,
    Server,
    ServerType,
)

from .validation import device_errors, validate_site

Entity = Union[Garage, Level, Device, Server, Contact, QuickLink]

# Fields that only the dedicated helpers may change.
_GARAGE_LOCKED = {"id", "levels", "servers", "contacts", "quick_links"}
_LEVEL_LOCKED = {"id", "devices"}
_DEVICE_LOCKED = {"id", "x", "y", "pending_placement"}
_SERVER_LOCKED = {"id"}


class SiteModel:
    """
    In-memory site: garages -> levels -> devices, plus servers and contacts.

    Example:
        site = SiteModel()
        garage = site.add_garage("Alpha")
        level = site.add_level(garage.id, "Ground", total_spots=150)
        cam = site.add_device(level.id, "CAM-1", CameraDetails(), ip_address="10.0.0.5")
        site.place_device(cam.id, 120, 80)
    """

    def __init__(
        self,
        garages: Sequence[Garage] = (),
        clock: Optional[Clock] = None,
        next_id: Optional[int] = None,
    ):
        self._garages: Tuple[Garage, ...] = tuple(garages)
        self._clock = clock or SystemClock()
        self._history: List[ChangeEntry] = []
        self._index: Optional[Dict[int, Tuple[str, Tuple[int, ...]]]] = None
        self._next_id = next_id if next_id is not None else self._max_id() + 1
        # Rejects duplicate ids in caller-supplied garages.
        self._build_index()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def garages(self) -> Tuple[Garage, ...]:
        return self._garages

    @property
    def history(self) -> Tuple[ChangeEntry, ...]:
        return tuple(self._history)

    def new_id(self) -> int:
        """Allocate the next id from the model's counter."""
        value = self._next_id
        self._next_id += 1
        return value

    def find(self, entity_id: int) -> Optional[Entity]:
        """Return the entity with ``entity_id`` or None."""
        entry = self._get_index().get(entity_id)
        if entry is None:
            return None
        kind, path = entry
        garage = self._garage_at(path[0])
        if kind == "garage":
            return garage
        if kind == "server":
            return garage.find_server(entity_id)
        if kind == "contact":
            return next(c for c in garage.contacts if c.id == entity_id)
        if kind == "quick_link":
            return next(q for q in garage.quick_links if q.id == entity_id)
        level = garage.find_level(path[1])
        if kind == "level":
            return level
        return level.find_device(entity_id)

    def lookup(self, entity_id: int) -> Entity:
        """Return the entity with ``entity_id``; raise InvalidOperation if unknown."""
        entity = self.find(entity_id)
        if entity is None:
            raise UnknownEntity(f"unknown id {entity_id}")
        return entity

    def garage(self, garage_id: int) -> Garage:
        return self._typed(garage_id, Garage)

    def level(self, level_id: int) -> Level:
        return self._typed(level_id, Level)

    def device(self, device_id: int) -> Device:
        return self._typed(device_id, Device)

    def server(self, server_id: int) -> Server:
        return self._typed(server_id, Server)

    def garage_of(self, entity_id: int) -> Garage:
        """Garage owning a level, device, server, contact or quick link."""
        entry = self._get_index().get(entity_id)
        if entry is None:
            raise UnknownEntity(f"unknown id {entity_id}")
        return self._garage_at(entry[1][0])

    def level_of(self, device_id: int) -> Level:
        entry = self._get_index().get(device_id)
        if entry is None or entry[0] != "device":
            raise UnknownEntity(f"unknown device {device_id}")
        return self._garage_at(entry[1][0]).find_level(entry[1][1])

    def levels(self) -> Iterator[Tuple[Garage, Level]]:
        for garage in self._garages:
            for level in garage.levels:
                yield garage, level

    def all_devices(self) -> Iterator[Device]:
        """Every device of the site, garage by garage, level by level."""
        for _, level in self.levels():
            yield from level.devices

    def validate(self) -> List[Finding]:
        """Return non-fatal findings (spot counts, dangling references, placement)."""
        return validate_site(self._garages)

    def to_dict(self) -> Dict[str, Any]:
        return {"garages": [g.to_dict() for g in self._garages]}

    # ------------------------------------------------------------------
    # Garages
    # ------------------------------------------------------------------

    def add_garage(self, name: str, **fields: Any) -> Garage:
        self._check_locked(fields, _GARAGE_LOCKED)
        garage = Garage(id=self.new_id(), name=name, **fields)
        self._set_garages(self._garages + (garage,))
        self._record("add-garage", garage.id, name)
        return garage

    def update_garage(self, garage_id: int, **changes: Any) -> Garage:
        self._check_locked(changes, _GARAGE_LOCKED)
        updated = replace(self.garage(garage_id), **changes)
        self._put_garage(updated)
        self._record("update-garage", garage_id, ", ".join(sorted(changes)))
        return updated

    def remove_garage(self, garage_id: int) -> None:
        self.garage(garage_id)
        self._set_garages(tuple(g for g in self._garages if g.id != garage_id))
        self._record("remove-garage", garage_id)

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------

    def add_level(self, garage_id: int, name: str, **fields: Any) -> Level:
        self._check_locked(fields, _LEVEL_LOCKED)
        garage = self.garage(garage_id)
        level = Level(id=self.new_id(), name=name, **fields)
        self._put_garage(replace(garage, levels=garage.levels + (level,)))
        self._record("add-level", level.id, name)
        return level

    def update_level(self, level_id: int, **changes: Any) -> Level:
        self._check_locked(changes, _LEVEL_LOCKED)
        updated = replace(self.level(level_id), **changes)
        self._put_level(updated)
        self._record("update-level", level_id, ", ".join(sorted(changes)))
        return updated

    def remove_level(self, level_id: int) -> None:
        garage = self.garage_of(self.level(level_id).id)
        levels = tuple(lvl for lvl in garage.levels if lvl.id != level_id)
        self._put_garage(replace(garage, levels=levels))
        self._record("remove-level", level_id)

    # ------------------------------------------------------------------
    # Servers
    # ------------------------------------------------------------------

    def add_server(self, garage_id: int, name: str,
                   server_type: ServerType = ServerType.RECORDING, **fields: Any) -> Server:
        self._check_locked(fields, _SERVER_LOCKED)
        garage = self.garage(garage_id)
        server = Server(id=self.new_id(), name=name, server_type=ServerType(server_type), **fields)
        self._put_garage(replace(garage, servers=garage.servers + (server,)))
        self._record("add-server", server.id, name)
        return server

    def update_server(self, server_id: int, **changes: Any) -> Server:
        self._check_locked(changes, _SERVER_LOCKED)
        if "server_type" in changes:
            changes["server_type"] = ServerType(changes["server_type"])
        garage = self.garage_of(self.server(server_id).id)
        updated = replace(garage.find_server(server_id), **changes)
        servers = tuple(updated if s.id == server_id else s for s in garage.servers)
        self._put_garage(replace(garage, servers=servers))
        self._record("update-server", server_id, ", ".join(sorted(changes)))
        return updated

    def remove_server(self, server_id: int) -> None:
        garage = self.garage_of(self.server(server_id).id)
        users = [d.name for lvl in garage.levels for d in lvl.devices if d.server_id == server_id]
        if users:
            raise InvalidOperation(f"server {server_id} is still referenced by {', '.join(users)}")
        servers = tuple(s for s in garage.servers if s.id != server_id)
        self._put_garage(replace(garage, servers=servers))
        self._record("remove-server", server_id)

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    def add_device(self, level_id: int, name: str, details: DeviceDetails, **fields: Any) -> Device:
        """
        Attach a new device to a level.

        Coordinates are optional: giving both ``x`` and ``y`` places the
        device, giving neither leaves it pending placement.
        """
        self._check_locked(fields, {"id", "pending_placement"})
        x, y = fields.pop("x", None), fields.pop("y", None)
        if (x is None) != (y is None):
            raise InvalidOperation("a device needs both x and y, or neither")
        level = self.level(level_id)
        device = Device(
            id=self.new_id(), name=name, details=details,
            x=x, y=y, pending_placement=x is None, **fields,
        )
        self._check_device(self.garage_of(level_id), device)
        self._put_level(replace(level, devices=level.devices + (device,)))
        self._record("add-device", device.id, name)
        return device

    def update_device(self, device_id: int, **changes: Any) -> Device:
        self._check_locked(changes, _DEVICE_LOCKED)
        updated = replace(self.device(device_id), **changes)
        return self._store_device(updated, "update-device", ", ".join(sorted(changes)))

    def remove_device(self, device_id: int) -> None:
        level = self.level_of(self.device(device_id).id)
        devices = tuple(d for d in level.devices if d.id != device_id)
        self._put_level(replace(level, devices=devices))
        self._record("remove-device", device_id)

    def place_device(self, device_id: int, x: float, y: float) -> Device:
        if x is None or y is None:
            raise InvalidOperation("placement requires both x and y")
        updated = replace(self.device(device_id), x=x, y=y, pending_placement=False)
        return self._store_device(updated, "place-device", f"{x},{y}")

    def unplace_device(self, device_id: int) -> Device:
        updated = replace(self.device(device_id), x=None, y=None, pending_placement=True)
        return self._store_device(updated, "unplace-device")

    def assign_server(self, device_id: int, server_id: Optional[int]) -> Device:
        updated = replace(self.device(device_id), server_id=server_id)
        return self._store_device(updated, "assign-server", str(server_id))

    def move_device(self, device_id: int, level_id: int) -> Device:
        """Move a device to another level; the device keeps its id and placement state."""
        device = self.device(device_id)
        target = self.level(level_id)
        source = self.level_of(device_id)
        if source.id == target.id:
            return device
        self._check_device(self.garage_of(level_id), device)
        self._put_level(replace(source, devices=tuple(d for d in source.devices if d.id != device_id)))
        target = self.level(level_id)
        self._put_level(replace(target, devices=target.devices + (device,)))
        self._record("move-device", device_id, f"{source.id}->{level_id}")
        return device

    def merge_devices(self, level_id: int, devices: Sequence[Device]) -> List[Device]:
        """
        Append parsed devices to a level.

        Incoming ids are discarded and fresh ones assigned. Merged devices are
        pending placement and carry no server reference.
        """
        level = self.level(level_id)
        garage = self.garage_of(level_id)
        merged: List[Device] = []
        for device in devices:
            fresh = replace(device, id=self.new_id(), x=None, y=None,
                            pending_placement=True, server_id=None)
            self._check_device(garage, fresh)
            merged.append(fresh)
        self._put_level(replace(level, devices=level.devices + tuple(merged)))
        self._record("merge-devices", level_id, f"{len(merged)} device(s)")
        return merged

    # ------------------------------------------------------------------
    # Contacts and quick links
    # ------------------------------------------------------------------

    def add_contact(self, garage_id: int, **fields: Any) -> Contact:
        garage = self.garage(garage_id)
        contact = Contact(id=self.new_id(), **fields)
        self._put_garage(replace(garage, contacts=garage.contacts + (contact,)))
        self._record("add-contact", contact.id, contact.name)
        return contact

    def remove_contact(self, contact_id: int) -> None:
        garage = self.garage_of(self._typed(contact_id, Contact).id)
        self._put_garage(replace(garage, contacts=tuple(c for c in garage.contacts if c.id != contact_id)))
        self._record("remove-contact", contact_id)

    def add_quick_link(self, garage_id: int, **fields: Any) -> QuickLink:
        garage = self.garage(garage_id)
        link = QuickLink(id=self.new_id(), **fields)
        self._put_garage(replace(garage, quick_links=garage.quick_links + (link,)))
        self._record("add-quick-link", link.id, link.name)
        return link

    def remove_quick_link(self, link_id: int) -> None:
        garage = self.garage_of(self._typed(link_id, QuickLink).id)
        links = tuple(q for q in garage.quick_links if q.id != link_id)
        self._put_garage(replace(garage, quick_links=links))
        self._record("remove-quick-link", link_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _typed(self, entity_id: int, cls: type):
        entity = self.find(entity_id)
        if not isinstance(entity, cls):
            raise UnknownEntity(f"unknown {cls.__name__.lower()} {entity_id}")
        return entity

    @staticmethod
    def _check_locked(fields: Dict[str, Any], locked: set) -> None:
        blocked = sorted(set(fields) & locked)
        if blocked:
            raise InvalidOperation(f"fields cannot be set here: {', '.join(blocked)}")

    @staticmethod
    def _check_device(garage: Garage, device: Device) -> None:
        errors = device_errors(garage, device)
        if errors:
            raise InvalidOperation(f"device '{device.name}': {'; '.join(errors)}")

    def _store_device(self, device: Device, action: str, detail: str = "") -> Device:
        level = self.level_of(device.id)
        self._check_device(self.garage_of(level.id), device)
        devices = tuple(device if d.id == device.id else d for d in level.devices)
        self._put_level(replace(level, devices=devices))
        self._record(action, device.id, detail)
        return device

    def _put_level(self, level: Level) -> None:
        garage = self.garage_of(level.id)
        levels = tuple(level if lvl.id == level.id else lvl for lvl in garage.levels)
        self._put_garage(replace(garage, levels=levels))

    def _put_garage(self, garage: Garage) -> None:
        self._set_garages(tuple(garage if g.id == garage.id else g for g in self._garages))

    def _set_garages(self, garages: Tuple[Garage, ...]) -> None:
        self._garages = garages
        self._index = None

    def _garage_at(self, garage_id: int) -> Garage:
        for garage in self._garages:
            if garage.id == garage_id:
                return garage
        raise UnknownEntity(f"unknown garage {garage_id}")

    def _get_index(self) -> Dict[int, Tuple[str, Tuple[int, ...]]]:
        if self._index is None:
            self._build_index()
        return self._index

    def _build_index(self) -> None:
        index: Dict[int, Tuple[str, Tuple[int, ...]]] = {}

        def put(entity_id: int, kind: str, path: Tuple[int, ...]) -> None:
            if entity_id in index:
                raise InvalidOperation(f"duplicate id {entity_id}")
            index[entity_id] = (kind, path)

        for garage in self._garages:
            put(garage.id, "garage", (garage.id,))
            for server in garage.servers:
                put(server.id, "server", (garage.id,))
            for contact in garage.contacts:
                put(contact.id, "contact", (garage.id,))
            for link in garage.quick_links:
                put(link.id, "quick_link", (garage.id,))
            for level in garage.levels:
                put(level.id, "level", (garage.id, level.id))
                for device in level.devices:
                    put(device.id, "device", (garage.id, level.id))
        self._index = index

    def _max_id(self) -> int:
        ids = [0]
        for garage in self._garages:
            ids.append(garage.id)
            ids.extend(s.id for s in garage.servers)
            ids.extend(c.id for c in garage.contacts)
            ids.extend(q.id for q in garage.quick_links)
            for level in garage.levels:
                ids.append(level.id)
                ids.extend(d.id for d in level.devices)
        return max(ids)

    def _record(self, action: str, entity_id: Optional[int] = None, detail: str = "") -> None:
        entry = ChangeEntry(timestamp=self._clock.now(), action=action,
                            entity_id=entity_id, detail=detail)
        self._history.append(entry)
        logging.debug(f"site change: {action} {entity_id} {detail}")
