# ddt_DataDrivenManager/loaders/csv_loader.py
from __future__ import annotations
from pathlib import Path
import logging
from typing import Sequence

import pandas as pd

from ..core.model import Record

_LOG = logging.getLogger(__name__)

EXTENSIONS = (".csv",)


def column_order(records: Sequence[Record]) -> list[str]:
    """Union of field names in first-seen order."""
    cols: dict[str, None] = {}
    for r in records:
        for k in r:
            cols.setdefault(k, None)
    return list(cols)


# ---------- public loader ----------
def read(path: Path, delimiter: str = ",", encoding: str = "utf-8") -> list[Record]:
    """
    Header row -> field names, every following non-blank line -> one record.
    All values are strings; empty cells stay "" (no NaN coercion).
    An empty file raises pandas' EmptyDataError.
    """
    if not path.is_file():
        raise FileNotFoundError(f"CSV file not found: {path}")
    df = pd.read_csv(path, sep=delimiter, dtype=str, keep_default_na=False,
                     skip_blank_lines=True, encoding=encoding)
    records = df.to_dict(orient="records")
    _LOG.info("read %d rows x %d columns from %s", len(records), df.shape[1], path.name)
    return records


def write(records: Sequence[Record], path: Path, include_headers: bool = True,
          delimiter: str = ",", encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame.from_records(list(records), columns=column_order(records))
    df.to_csv(path, index=False, header=include_headers, sep=delimiter, encoding=encoding)
    _LOG.info("wrote %d rows to %s", len(df), path.name)
