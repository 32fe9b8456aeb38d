# ddt_DataDrivenManager/core/manager.py
"""
Single entry point for data-driven testing: load, filter, sample and cache
records from CSV, Excel or JSON sources, run a test function once per record
and summarize the outcomes.
"""
from __future__ import annotations
import asyncio
import copy
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from ..loaders import csv_loader, excel_loader, json_loader
from ..utils.detect import detect_kind
from .cache import RecordCache, cache_key
from .context import RunContext, load_config
from .encryption import DataEncryption
from .errors import DataDrivenError, DataLoadError, EncryptionError, UnsupportedFormatError
from .executor import run_bounded, run_sequential
from .integrity import check_records
from .model import (CacheStats, DataSourceDescriptor, ExecutionConfig, ExecutionResult,
                    ExecutionSummary, ExportOptions, IntegrityIssue, IntegrityReport,
                    LoadOptions, Record, TestFunction)
from .reports import write_report
from .selection import filter_records, sample_records

PathLike = Union[str, Path]
Reader = Callable[..., list]


def _get_path(record: dict, dotted: str) -> Any:
    if dotted in record:
        return record[dotted]
    cur: Any = record
    for part in dotted.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _set_path(record: dict, dotted: str, value: Any) -> None:
    if dotted in record:
        record[dotted] = value
        return
    cur = record
    *parents, leaf = dotted.split(".")
    for part in parents:
        cur = cur[part]
    cur[leaf] = value


class DataDrivenTestManager:
    def __init__(self, context: Optional[RunContext] = None,
                 readers: Optional[Mapping[str, Reader]] = None):
        self._ctx = context or RunContext()
        self._log = self._ctx.logger
        self._cache = RecordCache()
        # format -> read(path, ...) ; overridable per format
        self._readers: dict[str, Reader] = {
            "csv":   csv_loader.read,
            "excel": excel_loader.read,
            "json":  json_loader.read,
        }
        if readers:
            self._readers.update(readers)
        self._closed = False
        self._log.info("data-driven test manager initialized")

    @property
    def context(self) -> RunContext:
        return self._ctx

    @property
    def encryption(self) -> DataEncryption:
        return self._ctx.encryption

    async def __aenter__(self) -> "DataDrivenTestManager":
        return self

    async def __aexit__(self, *exc) -> None:
        self.dispose()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("DataDrivenTestManager has been disposed")

    # ---------- loading ----------
    def _read(self, kind: str, path: Path, opts: LoadOptions) -> list:
        reader = self._readers[kind]
        if kind == "excel":
            return reader(path, sheet_name=opts.sheet_name)
        return reader(path)

    def _decrypt(self, records: list[Record], columns: Sequence[str]) -> list[Record]:
        out = []
        for rec in records:
            rec = dict(rec)
            for col in columns:
                value = rec.get(col)
                if not value:
                    continue
                try:
                    rec[col] = self.encryption.decrypt(str(value))
                except EncryptionError as e:
                    self._log.warning("could not decrypt column '%s': %s", col, e)
            out.append(rec)
        return out

    def _mask(self, results: list[ExecutionResult], columns: Sequence[str]) -> list[ExecutionResult]:
        # decrypted values never reach summaries or reports in clear
        out = []
        for r in results:
            if r.data is not None and any(c in r.data for c in columns):
                data = dict(r.data)
                for col in columns:
                    if col in data:
                        data[col] = self.encryption.mask_sensitive_data(str(data[col]))
                r = replace(r, data=data)
            out.append(r)
        return out

    async def load_test_data(self, path: PathLike, options: Optional[LoadOptions] = None,
                             **overrides: Any) -> list[Record]:
        """
        Load records from a .csv, .xlsx/.xls or .json file, then filter and
        sample them. Results are cached per (absolute path, options) unless
        ``use_cache`` is False.

        Raises UnsupportedFormatError for other extensions and DataLoadError
        (original error chained) when the file is missing, empty or malformed.
        """
        self._ensure_open()
        opts = replace(options or LoadOptions(), **overrides)
        p = Path(path)
        key = cache_key(p, opts)

        if opts.use_cache:
            hit = self._cache.get_records(key)
            if hit is not None:
                self._log.debug("returning cached data for %s", p)
                return hit

        kind = opts.source_format or detect_kind(p)
        if kind not in self._readers:
            raise UnsupportedFormatError(p)

        self._log.info("loading test data from %s", p)
        try:
            raw = await asyncio.to_thread(self._read, kind, p.resolve(), opts)
        except Exception as e:
            self._log.error("failed to load test data from %s: %s", p, e)
            raise DataLoadError(p, f"failed to load {kind} data: {e}", e) from e

        for i, rec in enumerate(raw):
            if not isinstance(rec, Mapping):
                raise DataLoadError(p, f"record {i} is a {type(rec).__name__}, expected an object")
        records = [dict(r) for r in raw]

        if opts.decrypt_columns:
            records = self._decrypt(records, opts.decrypt_columns)
        if opts.filter_criteria:
            records = filter_records(records, opts.filter_criteria)
            self._log.info("applied filters, %d records remaining", len(records))
        if opts.sample_size is not None and opts.sample_size < len(records):
            records = sample_records(records, opts.sample_size, opts.random_sample, opts.random_seed)
            self._log.info("applied sampling, using %d records", len(records))

        if opts.use_cache:
            self._cache.put_records(key, records)
        self._log.info("loaded %d records from %s", len(records), p)
        return list(records)

    async def load_configuration(self, path: PathLike, use_cache: bool = True) -> Any:
        """JSON or YAML configuration, cached by absolute path."""
        self._ensure_open()
        p = Path(path)
        if use_cache:
            found, cfg = self._cache.get_config(p)
            if found:
                self._log.debug("returning cached configuration for %s", p)
                return cfg

        suffix = p.suffix.lower()
        if suffix == ".json":
            loader = json_loader.read_document
        elif suffix in (".yaml", ".yml"):
            loader = load_config
        else:
            raise UnsupportedFormatError(p)

        self._log.info("loading configuration from %s", p)
        try:
            cfg = await asyncio.to_thread(loader, p.resolve())
        except Exception as e:
            self._log.error("failed to load configuration from %s: %s", p, e)
            raise DataLoadError(p, f"failed to load configuration: {e}", e) from e
        if use_cache:
            self._cache.put_config(p, cfg)
        return cfg

    # ---------- execution ----------
    def execution_config(self, test_function: TestFunction,
                         data_sources: Sequence[DataSourceDescriptor], **overrides: Any) -> ExecutionConfig:
        """ExecutionConfig seeded from the configured execution defaults."""
        s = self._ctx.settings
        cfg = ExecutionConfig(
            test_function=test_function,
            data_sources=list(data_sources),
            parallel=s.parallel,
            max_concurrency=s.max_concurrency,
            continue_on_failure=s.continue_on_failure,
            record_timeout=s.record_timeout,
        )
        return replace(cfg, **overrides)

    async def execute_data_driven_tests(self, config: ExecutionConfig) -> ExecutionSummary:
        """
        Run ``config.test_function`` once per record of every data source.

        Sources are processed in order. A source that fails to load is logged
        and skipped while ``continue_on_failure`` is True; otherwise the first
        load or test failure propagates and no summary or report is produced.
        """
        self._ensure_open()
        self._log.info("executing data-driven tests with %d data source(s)", len(config.data_sources))
        results: list[ExecutionResult] = []

        for ds in config.data_sources:
            label = ds.source_label
            self._log.info("processing data source: %s", ds.path)
            try:
                records = await self.load_test_data(ds.path, ds.load_options())
            except DataDrivenError as e:
                self._log.error("failed to process data source %s: %s", ds.path, e)
                if not config.continue_on_failure:
                    raise
                continue

            if config.parallel:
                res = await run_bounded(config.test_function, records, label,
                                        max_concurrency=config.max_concurrency,
                                        continue_on_failure=config.continue_on_failure,
                                        timeout=config.record_timeout, log=self._log)
            else:
                res = await run_sequential(config.test_function, records, label,
                                           continue_on_failure=config.continue_on_failure,
                                           timeout=config.record_timeout, log=self._log)
            if ds.decrypt_columns:
                res = self._mask(res, ds.decrypt_columns)
            results.extend(res)

        summary = ExecutionSummary.from_results(results)
        self._log.info("data-driven execution completed: total=%d passed=%d failed=%d skipped=%d pass rate=%.2f%%",
                       summary.total_tests, summary.passed, summary.failed, summary.skipped, summary.pass_rate)

        if config.generate_report:
            summary.report_path = await self._write_report(summary)
        return summary

    async def _write_report(self, summary: ExecutionSummary) -> Optional[Path]:
        # best-effort: a report that cannot be written never invalidates the summary
        s = self._ctx.settings
        try:
            path = await asyncio.to_thread(write_report, summary, s.report_path,
                                           self.get_cache_stats(), s.report_format)
        except (OSError, ValueError, TypeError) as e:
            self._log.error("could not write execution report to %s: %s", s.report_path, e)
            return None
        self._log.info("execution report generated: %s", path)
        return path

    # ---------- export ----------
    def _encrypt(self, records: Sequence[Record], paths: Sequence[str]) -> list[Record]:
        out = []
        for rec in records:
            rec = copy.deepcopy(dict(rec))
            for dotted in paths:
                value = _get_path(rec, dotted)
                if value is None or value == "":
                    continue
                try:
                    _set_path(rec, dotted, self.encryption.encrypt(str(value)))
                except EncryptionError as e:
                    self._log.warning("could not encrypt '%s': %s", dotted, e)
            out.append(rec)
        return out

    async def export_data(self, records: Sequence[Record], output_path: PathLike,
                          options: Optional[ExportOptions] = None) -> Path:
        """
        Write records as CSV, Excel or JSON depending on the extension,
        encrypting ``options.encrypt_columns`` first (dotted paths reach into
        nested JSON objects). Returns the absolute output path.
        """
        self._ensure_open()
        opts = options or ExportOptions()
        p = Path(output_path).resolve()
        kind = detect_kind(p)
        if kind == "unknown":
            raise UnsupportedFormatError(p)

        data = self._encrypt(records, opts.encrypt_columns) if opts.encrypt_columns else list(records)
        self._log.info("exporting %d records to %s", len(data), p)
        if kind == "csv":
            await asyncio.to_thread(csv_loader.write, data, p, include_headers=opts.include_headers)
        elif kind == "excel":
            await asyncio.to_thread(excel_loader.write, data, p, sheet_name=opts.sheet_name,
                                    include_headers=opts.include_headers)
        else:
            await asyncio.to_thread(json_loader.write, data, p, pretty=opts.pretty)
        return p

    # ---------- validation ----------
    async def validate_data_integrity(self, sources: Sequence[PathLike]) -> IntegrityReport:
        """
        Fresh load of every source (cache bypassed). Empty sources and load
        failures make the report invalid; structural and missing-field
        issues are informational.
        """
        self._ensure_open()
        self._log.info("validating data integrity for %d source(s)", len(sources))
        required = self._ctx.settings.required_fields
        issues: list[IntegrityIssue] = []
        valid = True

        for src in sources:
            name = str(src)
            try:
                records = await self.load_test_data(src, LoadOptions(use_cache=False))
            except DataDrivenError as e:
                issues.append(IntegrityIssue(name, f"Failed to load data source: {e}", "high"))
                valid = False
                continue
            found, fatal = check_records(name, records, required)
            issues.extend(found)
            if fatal:
                valid = False

        self._log.info("data integrity validation completed: %s", "PASSED" if valid else "FAILED")
        if issues:
            self._log.warning("found %d data integrity issue(s)", len(issues))
        return IntegrityReport(valid=valid, issues=issues)

    # ---------- cache lifecycle ----------
    def clear_cache(self) -> None:
        self._cache.clear()
        self._log.info("cache cleared")

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def dispose(self) -> None:
        """Drop every cached entry; the manager cannot be used afterwards."""
        if self._closed:
            return
        self._cache.clear()
        self._closed = True
        self._log.debug("data-driven test manager disposed")
