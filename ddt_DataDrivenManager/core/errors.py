# ddt_DataDrivenManager/core/errors.py
"""Exceptions raised by the data-driven test manager.

All of them derive from ``DataDrivenError`` so callers can catch the whole
family at once. ``RecordSkipped`` is not a failure: a test function raises it
to mark the current record as skipped.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional, Union


class DataDrivenError(Exception):
    """Base class for every error raised by this package."""


class DataLoadError(DataDrivenError):
    """A data source is missing, unreadable or malformed.

    The underlying exception is chained (``raise ... from``) and also kept on
    ``cause`` so reports can show it without walking ``__cause__``.
    """

    def __init__(self, path: Union[str, Path], message: str, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"{self.path}: {message}")


class UnsupportedFormatError(DataDrivenError):
    """The file extension is not one of .csv, .xlsx, .xls or .json."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.extension = self.path.suffix.lower()
        super().__init__(f"Unsupported file format: {self.extension or '<none>'} ({self.path.name})")


class EncryptionError(DataDrivenError):
    pass


class RecordSkipped(DataDrivenError):
    """Raised from a test function to report the record as skipped."""
