"""
Spreadsheet reading: OOXML bytes -> row dictionaries per sheet.

Each worksheet is read with its first row as headers. Blank rows are
skipped and missing cells read as ''. Row caps are enforced while
reading, so an oversized sheet is rejected before it is fully loaded.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from openpyxl import load_workbook

from models.errors import BadInput, LimitExceeded

Row = Dict[str, Any]

# Hard caps; see ImportLimits.
MAX_ROWS_PER_SHEET = 10_000
MAX_DEVICES_PER_SITE = 50_000

# Recognized sheet name -> RawData attribute.
SHEETS = {
    "Garages": "garages",
    "GarageLevels": "garage_levels",
    "DisplayGroups": "display_groups",
    "DisplayControllers": "display_controllers",
    "DisplayLevels": "display_levels",
    "DisplaySchedules": "display_schedules",
    "Cameras": "cameras",
    "FLICameras": "fli_cameras",
    "SensorGroups": "sensor_groups",
    "Sensors": "sensors",
}


@dataclass(frozen=True)
class ImportLimits:
    """
    Resource caps applied by the importer.

    Attributes:
        max_rows_per_sheet: Data rows (header excluded) allowed in any sheet.
        max_devices: Devices the whole site may synthesise.
    """
    max_rows_per_sheet: int = MAX_ROWS_PER_SHEET
    max_devices: int = MAX_DEVICES_PER_SITE


@dataclass
class RawData:
    """
    Echo of every sheet as read, used for diagnostic display.

    Recognized sheets have their own attribute; unknown sheets are kept in
    ``others`` keyed by sheet name. Missing sheets are empty lists.
    """
    garages: List[Row] = field(default_factory=list)
    garage_levels: List[Row] = field(default_factory=list)
    display_groups: List[Row] = field(default_factory=list)
    display_controllers: List[Row] = field(default_factory=list)
    display_levels: List[Row] = field(default_factory=list)
    display_schedules: List[Row] = field(default_factory=list)
    cameras: List[Row] = field(default_factory=list)
    fli_cameras: List[Row] = field(default_factory=list)
    sensor_groups: List[Row] = field(default_factory=list)
    sensors: List[Row] = field(default_factory=list)
    others: Dict[str, List[Row]] = field(default_factory=dict)

    @classmethod
    def from_sheets(cls, sheets: Dict[str, List[Row]]) -> "RawData":
        raw = cls()
        for name, rows in sheets.items():
            attr = SHEETS.get(name)
            if attr is None:
                raw.others[name] = rows
            else:
                setattr(raw, attr, rows)
        return raw

    def row_counts(self) -> Dict[str, int]:
        counts = {attr: len(getattr(self, attr)) for attr in SHEETS.values()}
        for name, rows in self.others.items():
            counts[name] = len(rows)
        return counts

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {attr: getattr(self, attr) for attr in SHEETS.values()}
        d["others"] = self.others
        return d


def _header(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _is_blank(values: Tuple[Any, ...]) -> bool:
    return all(v is None or (isinstance(v, str) and not v.strip()) for v in values)


def _read_sheet(worksheet, name: str, max_rows: int) -> List[Row]:
    rows: List[Row] = []
    headers: List[str] = []
    for values in worksheet.iter_rows(values_only=True):
        if not headers:
            if _is_blank(values):
                continue
            headers = [_header(v) for v in values]
            continue
        if _is_blank(values):
            continue
        if len(rows) >= max_rows:
            raise LimitExceeded(max_rows, len(rows) + 1, sheet=name)
        row: Row = {}
        for i, header in enumerate(headers):
            if not header or header in row:
                continue
            value = values[i] if i < len(values) else None
            row[header] = "" if value is None else value
        rows.append(row)
    return rows


def read_sheets(data: bytes, max_rows: int = MAX_ROWS_PER_SHEET) -> Tuple[List[str], Dict[str, List[Row]]]:
    """
    Read every worksheet of an OOXML workbook.

    Args:
        data: Workbook bytes.
        max_rows: Per-sheet data row cap.

    Returns:
        Tuple of (sheet names in workbook order, rows by sheet name).

    Raises:
        BadInput: Empty buffer, not a spreadsheet, or the workbook failed to parse.
        LimitExceeded: A sheet holds more than ``max_rows`` data rows.
    """
    if not data:
        raise BadInput("workbook buffer is empty")
    buffer = io.BytesIO(data)
    if not zipfile.is_zipfile(buffer):
        raise BadInput("buffer is not an OOXML spreadsheet")
    buffer.seek(0)

    try:
        workbook = load_workbook(buffer, read_only=True, data_only=True)
    except Exception as e:
        raise BadInput(f"failed to parse workbook: {e}") from e

    try:
        sheet_names = list(workbook.sheetnames)
        sheets: Dict[str, List[Row]] = {}
        for worksheet in workbook.worksheets:
            sheets[worksheet.title] = _read_sheet(worksheet, worksheet.title, max_rows)
            logging.debug(f"Read sheet {worksheet.title}: {len(sheets[worksheet.title])} rows")
    except LimitExceeded:
        raise
    except Exception as e:
        raise BadInput(f"failed to read workbook: {e}") from e
    finally:
        workbook.close()

    return sheet_names, sheets
