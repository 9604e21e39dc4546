from __future__ import annotations

from ..models.file_entry import SortResult
from ..models.report import ReportResult

"""SUMMARY line rendering for sort and report runs.

Formats:
    SUMMARY sort entries={n} moved={m} skipped={s} elapsed_sec={t}
    SUMMARY report groups={g} rows={r} columns={c} format={fmt} elapsed_sec={t}

The ``SUMMARY `` label itself is added by the logger (log_summary).
"""

__all__ = [
    "format_seconds",
    "render_sort_summary",
    "render_report_summary",
]


def format_seconds(value: float) -> str:
    """Render elapsed seconds without scientific notation or trailing zeros.

    Examples:
        >>> format_seconds(2.0)
        '2'
        >>> format_seconds(0.0000123)
        '0.000012'
        >>> format_seconds(1.25)
        '1.25'
    """
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_sort_summary(result: SortResult) -> str:
    return (
        f"sort entries={result.total_entries} "
        f"moved={result.moved} "
        f"skipped={result.skipped} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )


def render_report_summary(result: ReportResult, fmt: str) -> str:
    return (
        f"report groups={result.groups} "
        f"rows={result.rows} "
        f"columns={result.columns} "
        f"format={fmt} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )
