# ddt_DataDrivenManager/core/selection.py
from __future__ import annotations
import logging
import re
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from .model import Record

_LOG = logging.getLogger(__name__)

WILDCARD = "*"


def _wildcard_regex(pattern: str) -> re.Pattern:
    # anchored: "test*" matches "testing" but not "mytest"
    parts = (re.escape(p) for p in pattern.split(WILDCARD))
    return re.compile(".*".join(parts), re.IGNORECASE | re.DOTALL)


def matches(record: Record, criteria: Mapping[str, Any]) -> bool:
    """
    True when every criterion matches the record.
      - string value containing '*' -> case-insensitive glob on str(record value)
      - anything else               -> exact equality
    A key absent from the record only matches a criterion of None.
    """
    for key, expected in criteria.items():
        actual = record.get(key)
        if isinstance(expected, str) and WILDCARD in expected:
            if actual is None or _wildcard_regex(expected).fullmatch(str(actual)) is None:
                return False
        elif actual != expected:
            return False
    return True


def filter_records(records: Sequence[Record], criteria: Optional[Mapping[str, Any]]) -> list[Record]:
    if not criteria:
        return list(records)
    kept = [r for r in records if matches(r, criteria)]
    _LOG.debug("filter %s kept %d/%d records", dict(criteria), len(kept), len(records))
    return kept


def sample_records(records: Sequence[Record], sample_size: Optional[int],
                   random_sample: bool = False, seed: Optional[int] = None) -> list[Record]:
    """
    Reduce to ``sample_size`` records when fewer than available.
      - random_sample=False -> the first N records
      - random_sample=True  -> uniform subset without replacement, source order kept
    """
    if sample_size is None or sample_size >= len(records):
        return list(records)
    if sample_size < 0:
        raise ValueError(f"sample_size must be >= 0, got {sample_size}")
    if not random_sample:
        return list(records[:sample_size])
    rng = np.random.default_rng(seed)
    picks = np.sort(rng.choice(len(records), size=sample_size, replace=False))
    return [records[int(i)] for i in picks]
