from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from dispatch import CAMERA_HUB, DEVICES_CONFIG
from models.errors import BadInput, InvalidOperation, LimitExceeded, UnknownEntity

from ..api_models import (
    BootstrapResponse,
    ConfigPathsResponse,
    DeviceUpdateRequest,
    ExportResponse,
    FindingModel,
    ImportResponse,
    ImportSummaryModel,
    PlacementRequest,
    RawDataResponse,
    SaveConfigRequest,
)
from ..services.config_service import ConfigService
from ..services.site_service import SiteService
from ..state import state

router = APIRouter()

XML_MEDIA_TYPE = "application/xml"


@contextmanager
def translate_errors():
    """Map core errors to HTTP status codes."""
    try:
        yield
    except LimitExceeded as e:
        raise HTTPException(status_code=413, detail=str(e)) from e
    except BadInput as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except UnknownEntity as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidOperation as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


@router.get("/health")
def health():
    return {"ok": True, "site_loaded": state.site is not None}


@router.post("/site/import", response_model=ImportResponse)
async def import_site(request: Request):
    """Import a workbook sent as the raw request body."""
    data = await request.body()
    with translate_errors():
        result = await run_in_threadpool(SiteService.import_workbook, data)
    logging.info(f"Workbook imported via API ({len(data)} bytes)")
    return result


@router.get("/site")
def get_site() -> Dict[str, Any]:
    with translate_errors(), state.site_lock:
        return SiteService.require_site().to_dict()


@router.get("/site/summary", response_model=ImportSummaryModel)
def site_summary():
    with translate_errors():
        return SiteService.summary()


@router.get("/site/findings", response_model=List[FindingModel])
def site_findings():
    with translate_errors(), state.site_lock:
        return [f.to_dict() for f in SiteService.require_site().validate()]


@router.get("/site/raw", response_model=RawDataResponse)
def site_raw():
    with translate_errors():
        return SiteService.raw_counts()


@router.get("/site/history")
def site_history():
    with translate_errors(), state.site_lock:
        return [
            {
                "timestamp": entry.timestamp.isoformat(),
                "action": entry.action,
                "entity_id": entry.entity_id,
                "detail": entry.detail,
            }
            for entry in SiteService.require_site().history
        ]


@router.get("/devices/{device_id}")
def get_device(device_id: int):
    with translate_errors(), state.site_lock:
        return SiteService.require_site().device(device_id).to_dict()


@router.patch("/devices/{device_id}")
def update_device(device_id: int, req: DeviceUpdateRequest):
    with translate_errors():
        device = SiteService.update_device(device_id, req.model_dump(exclude_unset=True))
    return device.to_dict()


@router.post("/devices/{device_id}/place")
def place_device(device_id: int, req: PlacementRequest):
    with translate_errors(), state.site_lock:
        return SiteService.require_site().place_device(device_id, req.x, req.y).to_dict()


@router.post("/devices/{device_id}/unplace")
def unplace_device(device_id: int):
    with translate_errors(), state.site_lock:
        return SiteService.require_site().unplace_device(device_id).to_dict()


@router.delete("/devices/{device_id}")
def delete_device(device_id: int):
    with translate_errors(), state.site_lock:
        SiteService.require_site().remove_device(device_id)
    return {"ok": True}


@router.get("/devices/{device_id}/config-paths", response_model=ConfigPathsResponse)
def device_config_paths(device_id: int):
    with translate_errors():
        return SiteService.config_paths(device_id)


@router.get("/preview/camera-hub")
def preview_camera_hub():
    with translate_errors():
        files = SiteService.preview_site()
    if CAMERA_HUB not in files:
        raise HTTPException(status_code=404, detail="site has no cameras")
    return Response(content=files[CAMERA_HUB], media_type=XML_MEDIA_TYPE)


@router.get("/preview/devices-config")
def preview_devices_config():
    with translate_errors():
        files = SiteService.preview_site()
    return Response(content=files[DEVICES_CONFIG], media_type=XML_MEDIA_TYPE)


@router.post("/export/site", response_model=ExportResponse)
def export_site():
    with translate_errors():
        return {"files": SiteService.export()}


@router.post("/export/devices/{device_id}", response_model=ExportResponse)
def export_device(device_id: int):
    with translate_errors():
        return {"files": SiteService.export(device_id)}


@router.post("/levels/{level_id}/bootstrap", response_model=BootstrapResponse)
def bootstrap_level(level_id: int):
    with translate_errors():
        merged = SiteService.bootstrap(level_id)
    return {"merged": len(merged), "device_ids": [d.id for d in merged]}


@router.get("/install")
def install_status():
    return SiteService.layout().installed()


@router.get("/config")
def get_config():
    return state.get_config().to_dict()


@router.post("/config")
def save_config(req: SaveConfigRequest):
    try:
        ConfigService.save_overrides(req.overrides)
        config_path = state.config_path
        explicit_path = config_path if config_path and os.path.exists(config_path) else None
        state.set_config(ConfigService.load_typed(explicit_path=explicit_path), config_path)
        return {"ok": True}
    except Exception as e:
        raise HTTPException(status_code=400, detail=str(e))
