# ddt_DataDrivenManager/core/executor.py
from __future__ import annotations
import asyncio
import inspect
import logging
import time
from typing import Optional, Sequence

from .errors import RecordSkipped
from .model import ExecutionResult, Record, TestFunction

_LOG = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000.0, 3)


def _message(exc: BaseException, timeout: Optional[float]) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"timed out after {timeout}s"
    return str(exc) or type(exc).__name__


async def _call(fn: TestFunction, record: Record, index: int, source: str) -> None:
    if inspect.iscoroutinefunction(fn):
        await fn(record, index, source)
        return
    # plain callables run on a worker thread; a timeout cannot stop that thread
    out = await asyncio.to_thread(fn, record, index, source)
    if inspect.isawaitable(out):
        await out


async def _invoke(fn: TestFunction, record: Record, index: int, source: str,
                  timeout: Optional[float]) -> None:
    if timeout is None:
        await _call(fn, record, index, source)
    else:
        await asyncio.wait_for(_call(fn, record, index, source), timeout)


async def run_single(fn: TestFunction, record: Record, index: int, source: str, *,
                     continue_on_failure: bool = True, timeout: Optional[float] = None,
                     log: Optional[logging.Logger] = None) -> ExecutionResult:
    """
    Run the test function on one record and turn the outcome into a result.
      - returns normally   -> passed
      - raises RecordSkipped -> skipped
      - raises anything else -> failed (re-raised when continue_on_failure is False)
    """
    log = log or _LOG
    start = time.perf_counter()
    try:
        await _invoke(fn, record, index, source, timeout)
    except RecordSkipped as e:
        log.info("skipped %s[%d]: %s", source, index, e)
        return ExecutionResult(source=source, index=index, status="skipped",
                               duration=_elapsed_ms(start), error=str(e) or None, data=record)
    except Exception as e:
        msg = _message(e, timeout)
        log.error("test failed for %s[%d]: %s", source, index, msg)
        if not continue_on_failure:
            raise
        return ExecutionResult(source=source, index=index, status="failed",
                               duration=_elapsed_ms(start), error=msg, data=record)
    return ExecutionResult(source=source, index=index, status="passed",
                           duration=_elapsed_ms(start), data=record)


async def run_sequential(fn: TestFunction, records: Sequence[Record], source: str, *,
                         continue_on_failure: bool = True, timeout: Optional[float] = None,
                         log: Optional[logging.Logger] = None) -> list[ExecutionResult]:
    results = []
    for i, rec in enumerate(records):
        results.append(await run_single(fn, rec, i, source, continue_on_failure=continue_on_failure,
                                        timeout=timeout, log=log))
    return results


async def run_bounded(fn: TestFunction, records: Sequence[Record], source: str, *,
                      max_concurrency: int = 4, continue_on_failure: bool = True,
                      timeout: Optional[float] = None,
                      log: Optional[logging.Logger] = None) -> list[ExecutionResult]:
    """
    At most ``max_concurrency`` invocations in flight; a free slot is taken by
    the next record as soon as any running one finishes. Results come back in
    record order and carry each record's position in the full source list.
    On a fail-fast error the remaining invocations are cancelled. Synchronous
    test functions take a slot too, each on a worker thread.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
    sem = asyncio.Semaphore(max_concurrency)

    async def guarded(index: int, rec: Record) -> ExecutionResult:
        async with sem:
            return await run_single(fn, rec, index, source, continue_on_failure=continue_on_failure,
                                    timeout=timeout, log=log)

    tasks = [asyncio.ensure_future(guarded(i, rec)) for i, rec in enumerate(records)]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
