# ddt_DataDrivenManager/utils/detect.py
from __future__ import annotations
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Iterable, Literal, Union

DetectedKind = Literal["csv", "excel", "json", "unknown"]

_BY_SUFFIX: dict[str, DetectedKind] = {
    ".csv":  "csv",
    ".xlsx": "excel",
    ".xls":  "excel",
    ".json": "json",
}

@dataclass(frozen=True)
class DetectedItem:
    path: Path        # actual path on disk
    kind: DetectedKind

def detect_kind(p: Union[str, Path]) -> DetectedKind:
    """
    Classify a single path by extension (case-insensitive).
    - .csv         -> 'csv'
    - .xlsx / .xls -> 'excel'
    - .json        -> 'json'
    else           -> 'unknown'
    """
    return _BY_SUFFIX.get(Path(p).suffix.lower(), "unknown")

def _ignored(name: str) -> bool:
    # hidden entries and Excel lock files (~$name.xlsx)
    return name.startswith(".") or name.startswith("~$")

def discover_inputs(root: Path, recurse: bool = True,
                    skip_dirs: Iterable[str] = ("reports",),
                    exclude: Iterable[Path] = ()) -> list[DetectedItem]:
    """
    Collect the data sources under 'root' (or 'root' itself when it is a file).
    Folders named in 'skip_dirs' hold execution reports, not test data, and are
    not descended into; files in 'exclude' (e.g. the configured report path)
    are dropped wherever they sit.
    """
    root = Path(root)
    dropped = {Path(p).resolve() for p in exclude}
    if root.is_file():
        kind = detect_kind(root)
        if kind == "unknown" or root.resolve() in dropped:
            return []
        return [DetectedItem(root.resolve(), kind)]

    skip = {d.lower() for d in skip_dirs}
    items: list[DetectedItem] = []
    for dirpath, dirnames, filenames in os.walk(root):
        if recurse:
            dirnames[:] = [d for d in dirnames if not _ignored(d) and d.lower() not in skip]
        else:
            dirnames[:] = []
        for name in filenames:
            kind = detect_kind(name)
            if kind == "unknown" or _ignored(name):
                continue
            p = (Path(dirpath) / name).resolve()
            if p not in dropped:
                items.append(DetectedItem(p, kind))

    # by kind, then path
    items.sort(key=lambda x: (x.kind, str(x.path)))
    return items
