# ddt_DataDrivenManager/core/cache.py
from __future__ import annotations
import copy
import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Optional

from .model import CacheStats, LoadOptions, Record

_LOG = logging.getLogger(__name__)


def _dumps(obj: Any, **kw) -> str:
    return json.dumps(obj, default=str, ensure_ascii=False, **kw)


def cache_key(path: Path, options: LoadOptions) -> str:
    """Stable key for (absolute path, options); option field order never matters."""
    payload = {"path": str(Path(path).resolve()), "options": options.key_fields()}
    return hashlib.sha256(_dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()


class RecordCache:
    """
    Per-manager store of loaded record sets and configuration objects.
    Records are deep-copied in and out; callers never share dicts with the
    store. Unbounded, no eviction and no staleness check against file
    mtimes: entries live until clear() is called.
    """

    def __init__(self) -> None:
        self._records: dict[str, list[Record]] = {}
        self._configs: dict[str, Any] = {}

    # ---------- record sets ----------
    def get_records(self, key: str) -> Optional[list[Record]]:
        hit = self._records.get(key)
        return copy.deepcopy(hit) if hit is not None else None

    def put_records(self, key: str, records: list[Record]) -> None:
        self._records[key] = copy.deepcopy(list(records))

    # ---------- configuration ----------
    def get_config(self, path: Path) -> tuple[bool, Any]:
        k = str(Path(path).resolve())
        return (k in self._configs), self._configs.get(k)

    def put_config(self, path: Path, config: Any) -> None:
        self._configs[str(Path(path).resolve())] = config

    # ---------- lifecycle ----------
    def clear(self) -> None:
        n_rec, n_cfg = len(self._records), len(self._configs)
        self._records.clear()
        self._configs.clear()
        _LOG.debug("cache cleared (%d record sets, %d configs)", n_rec, n_cfg)

    def stats(self) -> CacheStats:
        size = sum(len(_dumps(v)) for v in self._records.values())
        size += sum(len(_dumps(v)) for v in self._configs.values())
        return CacheStats(
            test_data_entries=len(self._records),
            config_entries=len(self._configs),
            total_bytes=size,
        )

    def __len__(self) -> int:
        return len(self._records)
