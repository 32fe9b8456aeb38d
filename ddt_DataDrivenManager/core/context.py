# ddt_DataDrivenManager/core/context.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import logging
from typing import Optional, Union

import yaml

from .encryption import DEFAULT_KEY_ENV, DataEncryption

DEFAULT_REPORT_PATH = Path("reports") / "data-driven-execution-report.json"
DEFAULT_REQUIRED_FIELDS: tuple[str, ...] = ("testType", "priority")


def load_config(cfg_path: Union[str, Path]) -> dict:
    with Path(cfg_path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@dataclass(frozen=True)
class Settings:
    report_path: Path = DEFAULT_REPORT_PATH
    report_format: str = "json"            # json | csv | both
    required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS
    parallel: bool = False
    max_concurrency: int = 4
    continue_on_failure: bool = True
    record_timeout: Optional[float] = None
    encryption_key_env: str = DEFAULT_KEY_ENV

    @classmethod
    def from_config(cls, cfg: Optional[dict]) -> "Settings":
        """Map the YAML sections; missing keys keep their defaults."""
        cfg = cfg or {}
        rep = cfg.get("reports", {}) or {}
        exe = cfg.get("execution", {}) or {}
        val = cfg.get("validation", {}) or {}
        enc = cfg.get("encryption", {}) or {}
        fmt = str(rep.get("format", "json")).lower()
        if fmt not in ("json", "csv", "both"):
            raise ValueError(f"reports.format must be json, csv or both, got {fmt!r}")
        timeout = exe.get("record_timeout", None)
        return cls(
            report_path=Path(rep.get("path", DEFAULT_REPORT_PATH)),
            report_format=fmt,
            required_fields=tuple(str(f) for f in val.get("required_fields", DEFAULT_REQUIRED_FIELDS)),
            parallel=bool(exe.get("parallel", False)),
            max_concurrency=int(exe.get("max_concurrency", 4)),
            continue_on_failure=bool(exe.get("continue_on_failure", True)),
            record_timeout=float(timeout) if timeout is not None else None,
            encryption_key_env=str(enc.get("key_env", DEFAULT_KEY_ENV)),
        )


@dataclass
class RunContext:
    """
    Everything a manager shares with its collaborators. Built explicitly
    and handed to DataDrivenTestManager; nothing here is process-global.
    """
    settings: Settings = field(default_factory=Settings)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("ddt_DataDrivenManager"))
    encryption: Optional[DataEncryption] = None

    def __post_init__(self) -> None:
        if self.encryption is None:
            self.encryption = DataEncryption(key_env=self.settings.encryption_key_env)

    @classmethod
    def from_config(cls, cfg: Optional[dict], logger: Optional[logging.Logger] = None) -> "RunContext":
        settings = Settings.from_config(cfg)
        if logger is None:
            return cls(settings=settings)
        return cls(settings=settings, logger=logger)
