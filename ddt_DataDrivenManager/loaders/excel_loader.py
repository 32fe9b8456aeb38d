# ddt_DataDrivenManager/loaders/excel_loader.py
from __future__ import annotations
from pathlib import Path
import json
import logging
from typing import Any, Optional, Sequence

import pandas as pd
from openpyxl import Workbook

from ..core.model import Record
from .csv_loader import column_order

_LOG = logging.getLogger(__name__)

EXTENSIONS = (".xlsx", ".xls")


def _cell_value(v: Any) -> Any:
    """openpyxl takes scalars only; nested values are stored as JSON text."""
    if isinstance(v, (dict, list, tuple)):
        return json.dumps(v, ensure_ascii=False)
    return v


def _plain(v: Any) -> Any:
    # numpy scalars -> python scalars so records stay JSON friendly
    return v.item() if hasattr(v, "item") and not isinstance(v, (str, bytes)) else v


# ---------- public loader ----------
def read(path: Path, sheet_name: Optional[str] = None) -> list[Record]:
    """
    First sheet when ``sheet_name`` is None; header row -> field names.
    Fully blank rows are dropped, empty cells become "".
    """
    if not path.is_file():
        raise FileNotFoundError(f"Excel file not found: {path}")
    df = pd.read_excel(path, sheet_name=sheet_name if sheet_name is not None else 0, dtype=object)
    if len(df.columns) == 0:
        raise ValueError(f"{path.name}: sheet has no header row")
    df = df.dropna(how="all")
    df = df.astype(object).where(pd.notna(df), "")
    records = [{str(k): _plain(v) for k, v in row.items()} for row in df.to_dict(orient="records")]
    _LOG.info("read %d rows from %s [%s]", len(records), path.name, sheet_name or "first sheet")
    return records


def write(records: Sequence[Record], path: Path, sheet_name: str = "Sheet1",
          include_headers: bool = True) -> None:
    """Always written as an xlsx workbook; pandas detects the content on read-back."""
    path.parent.mkdir(parents=True, exist_ok=True)
    headers = column_order(records)
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    if include_headers:
        ws.append(headers)
    for r in records:
        ws.append([_cell_value(r.get(h)) for h in headers])
    wb.save(path)
    _LOG.info("wrote %d rows to %s [%s]", len(records), path.name, sheet_name)
