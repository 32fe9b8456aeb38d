# ddt_DataDrivenManager/main.py
from __future__ import annotations
from pathlib import Path
import asyncio
import logging
import sys

from .core.context import RunContext, load_config
from .core.manager import DataDrivenTestManager
from .utils.detect import discover_inputs

here = Path(__file__).resolve().parent


def configure_logging(cfg: dict) -> bool:
    log_cfg = cfg.get("logging", {}) or {}
    verbose = bool(log_cfg.get("verbose", True))
    level = str(log_cfg.get("level", "INFO" if verbose else "WARNING")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO),
                        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s")
    return verbose


async def validate_inputs(cfg: dict) -> int:
    """Discover data files under input.path and check their integrity. Returns an exit code."""
    verbose = configure_logging(cfg)
    in_path = Path(cfg.get("input", {}).get("path", "test-data")).resolve()
    recurse = bool(cfg.get("input", {}).get("recurse", True))
    if verbose:
        print(f"[cfg] input={in_path} (recurse={recurse})")

    # ---------- discover ----------
    if not in_path.exists():
        print(f"[WARN] input path does not exist: {in_path}")
        return 1
    ctx = RunContext.from_config(cfg)
    report_path = ctx.settings.report_path
    detected = discover_inputs(in_path, recurse=recurse,
                               skip_dirs=("reports", report_path.parent.name),
                               exclude=(report_path, report_path.with_suffix(".csv")))
    if not detected:
        print(f"[INFO] No CSV/Excel/JSON inputs found under: {in_path}")
        return 0
    if verbose:
        kinds: dict[str, int] = {}
        for d in detected:
            kinds[d.kind] = kinds.get(d.kind, 0) + 1
        print(f"[detector] found {sum(kinds.values())} inputs → {kinds}")

    # ---------- validate ----------
    async with DataDrivenTestManager(ctx) as manager:
        report = await manager.validate_data_integrity([d.path for d in detected])

    for issue in report.issues:
        print(f"  [{issue.severity:6}] {Path(issue.source).name}: {issue.issue}")
    print(f"[validate] {'PASSED' if report.valid else 'FAILED'} "
          f"({len(detected)} source(s), {len(report.issues)} issue(s))")
    return 0 if report.valid else 2


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    cfg_path = Path(argv[0]) if argv else here / "config.yaml"
    cfg = load_config(cfg_path)
    return asyncio.run(validate_inputs(cfg))


if __name__ == "__main__":
    sys.exit(main())
