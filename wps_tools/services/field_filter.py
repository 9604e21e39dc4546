from __future__ import annotations

from collections.abc import Sequence

from ..models.report import DEFAULT_GROUP_KEY, GroupedRows
from .errors import ValidationError

"""Column projection of grouped rows.

Validation looks at the rows of the FIRST group only; a column that appears
only in later groups is reported as missing. Any missing column rejects the
whole request: no partial report is produced.
"""

__all__ = [
    "validate_fields",
    "include_only_fields",
    "observed_columns",
]


def observed_columns(grouped: GroupedRows) -> set[str]:
    """Union of keys over the rows of the first group."""
    columns: set[str] = set()
    for group in grouped.values():
        for row in group:
            columns.update(row.keys())
        break
    return columns


def validate_fields(grouped: GroupedRows, fields: Sequence[str]) -> list[str]:
    """Return the requested fields that exist in the observed column set."""
    columns = observed_columns(grouped)
    return [f for f in fields if f in columns]


def include_only_fields(
    grouped: GroupedRows,
    fields: Sequence[str],
    key_field: str = DEFAULT_GROUP_KEY,
) -> GroupedRows:
    """Project every row to ``fields``.

    Rows keep their own key order, not ``fields`` order. Rows are re-bucketed
    by their own key column value and dropped when it is missing or falsy.

    Raises:
        ValidationError: some requested field is not in the observed columns
    """
    valid = validate_fields(grouped, fields)
    if len(valid) != len(fields):
        found = set(valid)
        missing = [f for f in fields if f not in found]
        raise ValidationError(f"Invalid fields provided: {missing}")

    wanted = set(fields)
    result: GroupedRows = {}
    for rows in grouped.values():
        for row in rows:
            asset = row.get(key_field)
            if not asset:
                continue
            result.setdefault(str(asset), []).append({k: v for k, v in row.items() if k in wanted})
    return result
