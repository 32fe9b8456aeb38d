# ddt_DataDrivenManager/core/model.py
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Awaitable, Callable, Literal, Mapping, Optional, Sequence, Union

Record = dict[str, Any]
SourceFormat = Literal["csv", "excel", "json"]
Status = Literal["passed", "failed", "skipped"]
Severity = Literal["low", "medium", "high"]

# test_function(record, index, source_label); may be a coroutine function
TestFunction = Callable[[Record, int, str], Union[Awaitable[Any], Any]]


@dataclass(frozen=True)
class LoadOptions:
    sheet_name: Optional[str] = None
    use_cache: bool = True
    source_format: Optional[SourceFormat] = None   # overrides the file extension
    filter_criteria: Optional[Mapping[str, Any]] = None
    sample_size: Optional[int] = None
    random_sample: bool = False
    random_seed: Optional[int] = None
    decrypt_columns: tuple[str, ...] = ()

    def key_fields(self) -> dict:
        """Everything that shapes the loaded records (``use_cache`` does not)."""
        d = asdict(self)
        d.pop("use_cache")
        d["filter_criteria"] = dict(self.filter_criteria) if self.filter_criteria else None
        d["decrypt_columns"] = sorted(self.decrypt_columns)
        return d


@dataclass(frozen=True)
class DataSourceDescriptor:
    path: Union[str, Path]
    format: Optional[SourceFormat] = None   # inferred from the extension when omitted
    sheet_name: Optional[str] = None
    label: Optional[str] = None
    filter_criteria: Optional[Mapping[str, Any]] = None
    sample_size: Optional[int] = None
    random_sample: bool = False
    decrypt_columns: tuple[str, ...] = ()   # masked again in result data

    @property
    def source_label(self) -> str:
        return self.label or Path(self.path).name

    def load_options(self) -> LoadOptions:
        return LoadOptions(
            sheet_name=self.sheet_name,
            source_format=self.format,
            filter_criteria=self.filter_criteria,
            sample_size=self.sample_size,
            random_sample=self.random_sample,
            decrypt_columns=tuple(self.decrypt_columns),
        )


@dataclass(frozen=True)
class ExecutionResult:
    source: str
    index: int
    status: Status
    duration: float            # wall clock, milliseconds
    error: Optional[str] = None
    data: Optional[Record] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ExecutionSummary:
    total_tests: int
    passed: int
    failed: int
    skipped: int
    results: list[ExecutionResult] = field(default_factory=list)
    report_path: Optional[Path] = None

    @property
    def pass_rate(self) -> float:
        if self.total_tests == 0:
            return 0.0
        return self.passed / self.total_tests * 100.0

    @classmethod
    def from_results(cls, results: Sequence[ExecutionResult]) -> "ExecutionSummary":
        counts = {"passed": 0, "failed": 0, "skipped": 0}
        for r in results:
            counts[r.status] += 1
        return cls(total_tests=len(results), results=list(results), **counts)


@dataclass
class ExecutionConfig:
    test_function: TestFunction
    data_sources: Sequence[DataSourceDescriptor]
    parallel: bool = False
    max_concurrency: int = 4
    continue_on_failure: bool = True
    generate_report: bool = True
    record_timeout: Optional[float] = None   # seconds; None waits forever


@dataclass(frozen=True)
class ExportOptions:
    sheet_name: str = "Sheet1"
    pretty: bool = True
    include_headers: bool = True
    encrypt_columns: tuple[str, ...] = ()


@dataclass(frozen=True)
class IntegrityIssue:
    source: str
    issue: str
    severity: Severity


@dataclass
class IntegrityReport:
    valid: bool
    issues: list[IntegrityIssue] = field(default_factory=list)


@dataclass(frozen=True)
class CacheStats:
    test_data_entries: int
    config_entries: int
    total_bytes: int

    @property
    def total_memory_usage(self) -> str:
        return f"{self.total_bytes / 1024:.2f} KB"

    def to_dict(self) -> dict:
        return {
            "testDataEntries": self.test_data_entries,
            "configEntries": self.config_entries,
            "totalMemoryUsage": self.total_memory_usage,
        }
