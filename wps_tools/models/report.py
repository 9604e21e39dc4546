from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

"""Report models for the spreadsheet -> grouped document transform."""

__all__ = [
    "DEFAULT_GROUP_KEY",
    "InspectionRow",
    "GroupedRows",
    "FieldSelection",
    "ReportFormat",
    "ReportResult",
]

# Column whose value buckets rows into report sections.
DEFAULT_GROUP_KEY = "Asset Name"

# Column name -> scalar cell value. Blank cells are absent, not None.
InspectionRow = dict[str, Any]

# Group key -> rows in input order. dict insertion order is the group order.
GroupedRows = dict[str, list[InspectionRow]]

# Ordered column names chosen by the user.
FieldSelection = list[str]


class ReportFormat(Enum):
    """Output document formats."""
    PDF = "pdf"
    DOCX = "docx"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @classmethod
    def parse(cls, value: str | ReportFormat) -> ReportFormat:
        if isinstance(value, ReportFormat):
            return value
        try:
            return cls(str(value).strip().lower().lstrip("."))
        except ValueError as e:
            raise ValueError(f"unsupported report format: {value!r}") from e


@dataclass(frozen=True)
class ReportResult:
    """Result handed back to the caller of generate_report."""
    success: bool
    message: str
    output_path: str | None = None
    groups: int = 0
    rows: int = 0
    columns: int = 0
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message}
