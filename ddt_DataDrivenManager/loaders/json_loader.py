# ddt_DataDrivenManager/loaders/json_loader.py
from __future__ import annotations
from pathlib import Path
import json
import logging
from typing import Any

_LOG = logging.getLogger(__name__)

EXTENSIONS = (".json",)


def read_document(path: Path, encoding: str = "utf-8") -> Any:
    """Whole-file JSON, any top-level type."""
    if not path.is_file():
        raise FileNotFoundError(f"JSON file not found: {path}")
    with path.open("r", encoding=encoding) as f:
        return json.load(f)


# ---------- public loader ----------
def read(path: Path, encoding: str = "utf-8") -> list:
    """A non-array top level is wrapped as a single record."""
    data = read_document(path, encoding=encoding)
    records = data if isinstance(data, list) else [data]
    _LOG.info("read %d records from %s", len(records), path.name)
    return records


def write(data: Any, path: Path, pretty: bool = True, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding=encoding) as f:
        json.dump(data, f, indent=2 if pretty else None, ensure_ascii=False, default=str)
    _LOG.info("wrote JSON to %s", path.name)
