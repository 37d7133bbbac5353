"""
Workbook Importer: spreadsheet bytes -> SiteModel.

Reads every sheet with openpyxl, joins the recognized sheets into
garages, levels and devices, and returns the model together with an
echo of the raw rows. Limit and parse failures abort the whole import.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from models.capabilities import Clock
from sitemodel import SiteModel

from .coercion import as_bool, as_int, as_num, as_str, display
from .join import SiteBuilder, level_config_from_row
from .summary import ImportSummary, summarize
from .workbook import (
    MAX_DEVICES_PER_SITE,
    MAX_ROWS_PER_SHEET,
    SHEETS,
    ImportLimits,
    RawData,
    read_sheets,
)


@dataclass
class WorkbookImport:
    """Result of one import: the model, the raw sheet echo and sheet order."""
    site: SiteModel
    raw_data: RawData
    sheet_names: List[str]


def parse_workbook(data: bytes, limits: ImportLimits = ImportLimits(),
                   clock: Optional[Clock] = None) -> WorkbookImport:
    """
    Import a site-definition workbook.

    Args:
        data: OOXML workbook bytes.
        limits: Row and device caps.
        clock: Clock for the model's change history.

    Returns:
        WorkbookImport with a fresh SiteModel.

    Raises:
        BadInput: Empty or unreadable buffer.
        LimitExceeded: A sheet or the synthesised device count is over its cap.
    """
    sheet_names, sheets = read_sheets(data, limits.max_rows_per_sheet)
    raw = RawData.from_sheets(sheets)

    builder = SiteBuilder(raw, limits)
    garages = builder.build()
    site = SiteModel(garages, clock=clock, next_id=builder.next_id)

    logging.info(
        f"Imported workbook: {len(garages)} garage(s), "
        f"{sum(len(g.levels) for g in garages)} level(s), {builder.device_count} device(s)"
    )
    return WorkbookImport(site=site, raw_data=raw, sheet_names=sheet_names)


def import_workbook(data: bytes) -> SiteModel:
    """Import a workbook and return only the SiteModel."""
    return parse_workbook(data).site


def import_summary(result: WorkbookImport) -> ImportSummary:
    return summarize(result.site, result.raw_data)


__all__ = [
    "WorkbookImport",
    "parse_workbook",
    "import_workbook",
    "import_summary",
    "ImportSummary",
    "ImportLimits",
    "RawData",
    "SiteBuilder",
    "SHEETS",
    "MAX_ROWS_PER_SHEET",
    "MAX_DEVICES_PER_SITE",
    "level_config_from_row",
    "read_sheets",
    "as_str",
    "as_num",
    "as_int",
    "as_bool",
    "display",
]
