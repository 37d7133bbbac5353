from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ImportSummaryModel(BaseModel):
    garages: int
    levels: int
    devices: int
    cameras: int
    signs: int
    sensors: int
    pending_placement: int
    sheet_rows: Dict[str, int]
    dangling: Dict[str, int] = Field(
        default_factory=dict,
        description="Rows skipped because the record they reference is missing",
    )


class ImportResponse(BaseModel):
    sheet_names: List[str]
    summary: ImportSummaryModel


class RawDataResponse(BaseModel):
    sheet_names: List[str]
    row_counts: Dict[str, int]


class FindingModel(BaseModel):
    code: str = Field(..., description="spot-mismatch|dangling-server|missing-coordinates|...")
    entity_id: int
    message: str


class DeviceUpdateRequest(BaseModel):
    """
    Partial device update. Omitted fields are left alone; ``server_id``
    set to null unassigns the server.
    """
    name: Optional[str] = None
    ip_address: Optional[str] = None
    port: Optional[str] = None
    mac_address: Optional[str] = None
    external_url: Optional[str] = None
    server_id: Optional[int] = None
    details: Optional[Dict[str, Any]] = None


class PlacementRequest(BaseModel):
    x: float
    y: float


class ConfigPathsResponse(BaseModel):
    device_id: int
    logical_paths: List[str]
    files: List[str]


class ExportedFile(BaseModel):
    logical_path: str
    path: str


class ExportResponse(BaseModel):
    files: List[ExportedFile]


class BootstrapResponse(BaseModel):
    merged: int
    device_ids: List[int]


class SaveConfigRequest(BaseModel):
    overrides: Dict[str, Any]
