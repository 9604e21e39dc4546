from __future__ import annotations

from collections.abc import Iterable

from ..models.report import DEFAULT_GROUP_KEY, GroupedRows, InspectionRow

"""Row grouping by asset.

Rows are bucketed by the value of the key column (``"Asset Name"`` by default)
in a single pass. Group order is first-seen order; row order inside a group is
input order. Rows whose key is missing or falsy are dropped.
"""

__all__ = [
    "DEFAULT_GROUP_KEY",
    "group_rows",
    "available_columns",
    "order_selection",
]


def group_rows(rows: Iterable[InspectionRow], key_field: str = DEFAULT_GROUP_KEY) -> GroupedRows:
    grouped: GroupedRows = {}
    for row in rows:
        key = row.get(key_field)
        if not key:
            continue
        grouped.setdefault(str(key), []).append(row)
    return grouped


def available_columns(grouped: GroupedRows) -> list[str]:
    """Columns offered for selection: keys of the first row of the first group."""
    for group in grouped.values():
        if group:
            return list(group[0].keys())
        break
    return []


def order_selection(selected: Iterable[str], available: list[str]) -> list[str]:
    """Reorder a saved selection by ``available`` order.

    Names not in ``available`` keep their relative order at the end, so a later
    validation can still report them.
    """
    position = {name: i for i, name in enumerate(available)}
    unique = list(dict.fromkeys(selected))
    return sorted(unique, key=lambda name: position.get(name, len(available)))
