from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import numpy as np
import pandas as pd

"""Workbook reader.

The first sheet of the workbook is read; its first row is the header and every
following non-blank row becomes one InspectionRow. Blank cells are left out of
the row mapping entirely, so ``"Asset Name" in row`` is False for a row with an
empty asset cell. Blank or missing header cells become ``__EMPTY``,
``__EMPTY_1``...; repeated header names get ``_1``, ``_2`` suffixes.
"""

__all__ = [
    "SheetParser",
    "PandasSheetParser",
    "SheetData",
    "SheetHeaderError",
    "read_first_sheet",
    "normalize_sheet",
    "convert_sheet_to_rows",
]

EMPTY_HEADER = "__EMPTY"


class SheetHeaderError(Exception):
    """Raised when the workbook has no sheet or the sheet has no header row."""


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, Any]]


class SheetParser(Protocol):
    """Capability: parse a workbook file into row mappings."""

    def parse(self, path: Path) -> list[dict[str, Any]]: ...


def read_first_sheet(path: Path) -> tuple[str, pd.DataFrame]:
    """Read the first sheet of ``path`` without header interpretation.

    Returns:
        (sheet name, raw DataFrame with object dtype)
    """
    with pd.ExcelFile(path) as xls:
        if not xls.sheet_names:
            raise SheetHeaderError(f"workbook '{path}' has no sheets")
        name = xls.sheet_names[0]
        df = xls.parse(name, header=None, dtype=object)
    return str(name), df


def _header_names(raw_header: list[Any]) -> list[str]:
    seen: dict[str, int] = {}
    columns: list[str] = []
    for value in raw_header:
        name = EMPTY_HEADER if pd.isna(value) or str(value).strip() == "" else str(value).strip()
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 0
        columns.append(name)
    return columns


def _python_value(val: Any) -> Any:
    if isinstance(val, np.generic):
        return val.item()
    if isinstance(val, pd.Timestamp):
        return val.to_pydatetime()
    return val


def normalize_sheet(df: pd.DataFrame, sheet_name: str) -> SheetData:
    """Turn a raw sheet into header + row mappings.

    Steps:
    1. Validate at least one row exists (the header)
    2. Build column names from the first row
    3. Remaining rows become data rows; all-blank rows are dropped
    4. Blank cells are omitted from each row mapping
    """
    if df.shape[0] < 1:
        raise SheetHeaderError(f"sheet '{sheet_name}' has no header row")
    columns = _header_names(df.iloc[0].tolist())
    rows: list[dict[str, Any]] = []
    for _, raw in df.iloc[1:].iterrows():
        if raw.isna().all():
            continue
        row: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            if pd.isna(val):
                continue
            row[col] = _python_value(val)
        rows.append(row)
    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows)


class PandasSheetParser:
    """Default SheetParser backed by pandas + openpyxl."""

    def parse(self, path: Path) -> list[dict[str, Any]]:
        sheet_name, df = read_first_sheet(Path(path))
        return normalize_sheet(df, sheet_name).rows


def convert_sheet_to_rows(path: Path, parser: SheetParser | None = None) -> list[dict[str, Any]]:
    """Parse ``path`` into InspectionRows using ``parser`` (pandas by default)."""
    return (parser or PandasSheetParser()).parse(Path(path))
