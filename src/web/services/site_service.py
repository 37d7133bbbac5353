from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, Dict, List, Optional

from dispatch import (
    DirectoryReader,
    DirectoryWriter,
    PathLayout,
    bootstrap_from_install,
    config_file_paths,
    export_device,
    export_site,
    plan_site_export,
)
from importer import import_summary, parse_workbook
from importer.summary import summarize
from models.device import Device, Stream
from models.errors import BadInput, InvalidOperation
from sitemodel import SiteModel

from ..state import state

# Top-level Device fields the API may patch directly.
DEVICE_FIELDS = ("name", "ip_address", "port", "mac_address", "external_url")


def _coerce_stream(value: Any, current: Any) -> Any:
    if value is None or isinstance(value, Stream):
        return value
    if not isinstance(value, dict):
        raise BadInput("stream must be an object")
    base = current if isinstance(current, Stream) else Stream()
    changes = dict(value)
    if "sub_kind" in changes:
        changes["sub_kind"] = type(base.sub_kind)(changes["sub_kind"])
    return replace(base, **changes)


def details_changes(device: Device, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert JSON detail values to the types of the device's details record.

    Raises:
        BadInput: Unknown field or a value the field cannot take.
    """
    known = {f.name for f in fields(device.details)}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise BadInput(f"unknown {device.kind.value} fields: {', '.join(unknown)}")

    converted: Dict[str, Any] = {}
    try:
        for name, value in changes.items():
            current = getattr(device.details, name)
            if name == "sub_kind":
                converted[name] = type(current)(value)
            elif name in ("stream1", "stream2"):
                converted[name] = _coerce_stream(value, current)
            elif isinstance(current, tuple):
                converted[name] = tuple(value or ())
            else:
                converted[name] = value
    except (TypeError, ValueError) as e:
        raise BadInput(f"invalid device details: {e}") from e
    return converted


class SiteService:
    """Operations of the web API against the shared SiteModel."""

    @staticmethod
    def require_site() -> SiteModel:
        if state.site is None:
            raise InvalidOperation("no site loaded; import a workbook first")
        return state.site

    @staticmethod
    def layout() -> PathLayout:
        return PathLayout.from_config(state.get_config().paths)

    @staticmethod
    def import_workbook(data: bytes) -> Dict[str, Any]:
        result = parse_workbook(data)
        with state.site_lock:
            state.set_import(result)
        return {
            "sheet_names": result.sheet_names,
            "summary": import_summary(result).to_dict(),
        }

    @staticmethod
    def summary() -> Dict[str, Any]:
        with state.site_lock:
            site = SiteService.require_site()
            return summarize(site, state.raw_data).to_dict()

    @staticmethod
    def raw_counts() -> Dict[str, Any]:
        with state.site_lock:
            SiteService.require_site()
            return {
                "sheet_names": list(state.sheet_names),
                "row_counts": state.raw_data.row_counts(),
            }

    @staticmethod
    def update_device(device_id: int, changes: Dict[str, Any]) -> Device:
        with state.site_lock:
            site = SiteService.require_site()
            device = site.device(device_id)
            details = changes.pop("details", None) or {}
            server_id = changes.pop("server_id", device.server_id)
            direct = {k: v for k, v in changes.items() if k in DEVICE_FIELDS and v is not None}
            if details:
                direct["details"] = replace(device.details, **details_changes(device, details))
            if direct:
                site.update_device(device_id, **direct)
            if server_id != device.server_id:
                site.assign_server(device_id, server_id)
            return site.device(device_id)

    @staticmethod
    def config_paths(device_id: int) -> Dict[str, Any]:
        with state.site_lock:
            device = SiteService.require_site().device(device_id)
        layout = SiteService.layout()
        logical = config_file_paths(device)
        return {
            "device_id": device_id,
            "logical_paths": logical,
            "files": [str(layout.resolve(p)) for p in logical],
        }

    @staticmethod
    def preview_site() -> Dict[str, str]:
        with state.site_lock:
            files = plan_site_export(SiteService.require_site())
        return {f.logical_path: f.content for f in files}

    @staticmethod
    def export(device_id: Optional[int] = None) -> List[Dict[str, str]]:
        layout = SiteService.layout()
        writer = DirectoryWriter(layout)
        with state.site_lock:
            site = SiteService.require_site()
            if device_id is None:
                files = export_site(site, writer)
            else:
                files = export_device(site, device_id, writer)
        return [{"logical_path": f.logical_path, "path": str(layout.resolve(f.logical_path))} for f in files]

    @staticmethod
    def bootstrap(level_id: int) -> List[Device]:
        reader = DirectoryReader(SiteService.layout())
        with state.site_lock:
            merged = bootstrap_from_install(SiteService.require_site(), level_id, reader)
        logging.info(f"Bootstrap merged {len(merged)} device(s)")
        return merged
