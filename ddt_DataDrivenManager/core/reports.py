# ddt_DataDrivenManager/core/reports.py
from __future__ import annotations
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Literal, Optional

import pandas as pd

from ..loaders import json_loader
from .model import CacheStats, ExecutionSummary

ReportFormat = Literal["json", "csv", "both"]

_LOG = logging.getLogger(__name__)

_DETAIL_COLS = ["source", "index", "status", "duration", "error", "data"]


def build_report(summary: ExecutionSummary, cache_stats: Optional[CacheStats] = None) -> dict:
    """Report document: {timestamp, summary, details, cacheStats}."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "summary": {
            "totalTests": summary.total_tests,
            "passed": summary.passed,
            "failed": summary.failed,
            "skipped": summary.skipped,
            "passRate": f"{summary.pass_rate:.2f}%",
        },
        "details": [r.to_dict() for r in summary.results],
        "cacheStats": cache_stats.to_dict() if cache_stats is not None else None,
    }


def _build_dataframe(summary: ExecutionSummary) -> pd.DataFrame:
    """One row per result; the echoed record is flattened to JSON text."""
    rows = []
    for r in summary.results:
        row = r.to_dict()
        row["data"] = json.dumps(row["data"], default=str, ensure_ascii=False) if row["data"] is not None else ""
        row["error"] = row["error"] or ""
        rows.append(row)
    return pd.DataFrame(rows, columns=_DETAIL_COLS)


def _write_csv(df_out: pd.DataFrame, out_csv: Path, title: str) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_csv, index=False, encoding="utf-8")
    _LOG.info("wrote report: %s -> %s", title, out_csv)


def _write_json(report: dict, out_json: Path, title: str) -> None:
    json_loader.write(report, out_json, pretty=True)
    _LOG.info("wrote report: %s -> %s", title, out_json)


def write_report(summary: ExecutionSummary,
                 out_path: Path,
                 cache_stats: Optional[CacheStats] = None,
                 fmt: ReportFormat = "json",
                 title: str = "data-driven execution") -> Path:
    """
    Write report(s) in the requested format and return the primary path.
    - out_path: the JSON report path; the CSV details table shares its stem
    - fmt: "json" | "csv" | "both"
    Raises OSError when the target cannot be written.
    """
    out_path = Path(out_path)
    primary = out_path
    if fmt in ("json", "both"):
        _write_json(build_report(summary, cache_stats), out_path.with_suffix(".json"), title)
        primary = out_path.with_suffix(".json")
    if fmt in ("csv", "both"):
        _write_csv(_build_dataframe(summary), out_path.with_suffix(".csv"), title)
        if fmt == "csv":
            primary = out_path.with_suffix(".csv")
    return primary
