"""Domain models for the file sorter and the inspection report generator."""

from .error_record import ErrorDetail, ErrorRecord, generate_error_id, utc_now_iso
from .file_entry import FileEntry, SortResult
from .report import DEFAULT_GROUP_KEY, FieldSelection, GroupedRows, InspectionRow, ReportFormat, ReportResult

__all__ = [
    # Sorter models
    "FileEntry",
    "SortResult",
    # Report models
    "DEFAULT_GROUP_KEY",
    "InspectionRow",
    "GroupedRows",
    "FieldSelection",
    "ReportFormat",
    "ReportResult",
    # Error log models
    "ErrorDetail",
    "ErrorRecord",
    "generate_error_id",
    "utc_now_iso",
]
