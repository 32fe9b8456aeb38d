# ddt_DataDrivenManager/core/integrity.py
from __future__ import annotations
from typing import Sequence

from .model import IntegrityIssue, Record


def check_records(source: str, records: Sequence[Record],
                  required_fields: Sequence[str]) -> tuple[list[IntegrityIssue], bool]:
    """
    Structural checks on one loaded source. Returns (issues, fatal).
    Only an empty source is fatal; structure and missing-field issues are
    reported but leave the source valid.
    """
    issues: list[IntegrityIssue] = []

    if not records:
        issues.append(IntegrityIssue(source, "Data source is empty", "high"))
        return issues, True

    first_keys = sorted(records[0])
    for i, rec in enumerate(records[1:], start=2):
        if sorted(rec) != first_keys:
            issues.append(IntegrityIssue(source, f"Inconsistent structure at record {i}", "medium"))

    # empty strings / None count as missing, like a blank spreadsheet cell
    for field in required_fields:
        n_missing = sum(1 for rec in records if not rec.get(field))
        if n_missing:
            issues.append(IntegrityIssue(
                source,
                f"Missing required field '{field}' in {n_missing} of {len(records)} records",
                "medium",
            ))
    return issues, False
