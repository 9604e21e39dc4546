from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ..config.loader import AppSettings
from ..config.store import (
    JsonStore,
    SorterState,
    get_store,
    load_selected_columns,
    load_sorter_state,
    record_files_moved,
    save_selected_columns,
)
from ..excel.reader import SheetHeaderError, SheetParser, convert_sheet_to_rows
from ..logging.error_log import ErrorLog
from ..logging.init import log_summary
from ..models.report import GroupedRows, ReportFormat, ReportResult
from .dialogs import ConsoleDialogs, DialogProvider
from .errors import OperationInProgressError, RenderError, ValidationError
from .field_filter import include_only_fields
from .grouping import available_columns, group_rows, order_selection
from .progress import ProgressChannel
from .render import DocumentRenderer, RenderOptions, get_renderer
from .sorter import FolderMover
from .summary import render_report_summary, render_sort_summary

"""Operation orchestration for the sorter and the report generator.

``ToolsApp`` is the surface the shell (CLI or GUI) talks to:
- select_source_folder / select_output_folder / select_spreadsheet_file
- sort_files(source, output=None) -> final output dir or None
- convert_sheet_to_rows(path) -> rows
- generate_report(source, output, fields, fmt) -> ReportResult
- progress: ProgressChannel with 0-100 events

Only one sort/report run may be in flight at a time (OperationGate); a second
request is rejected. Sort validation problems are shown through the dialog
provider, report problems come back as ``ReportResult(success=False)``.
"""

__all__ = [
    "OperationGate",
    "ToolsApp",
]

logger = logging.getLogger(__name__)

SORT_ERROR_TITLE = "Error Sorting Files"
REPORT_EXTENSIONS = frozenset(f.extension for f in ReportFormat)


class OperationGate:
    """Single in-flight operation guard. Non-blocking: busy means reject."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.current: str | None = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise OperationInProgressError(f"'{self.current}' is already in progress")
        self.current = name
        try:
            yield
        finally:
            self.current = None
            self._lock.release()


class ToolsApp:
    def __init__(
        self,
        settings: AppSettings,
        dialogs: DialogProvider | None = None,
        parser: SheetParser | None = None,
        renderers: dict[ReportFormat, DocumentRenderer] | None = None,
        progress: ProgressChannel | None = None,
        gate: OperationGate | None = None,
        store: JsonStore | None = None,
    ) -> None:
        self.settings = settings
        self.dialogs: DialogProvider = dialogs if dialogs is not None else ConsoleDialogs()
        self.parser = parser
        self.renderers = dict(renderers or {})
        self.progress = progress if progress is not None else ProgressChannel()
        self.gate = gate if gate is not None else OperationGate()
        self.store = store if store is not None else get_store(settings.config_dir)
        self.error_log = ErrorLog(settings.config_dir, store=self.store)

    # -- dialogs ---------------------------------------------------------

    def select_source_folder(self) -> str | None:
        return self.dialogs.select_source_folder()

    def select_output_folder(self) -> str | None:
        return self.dialogs.select_output_folder()

    def select_spreadsheet_file(self) -> str | None:
        return self.dialogs.select_spreadsheet_file()

    # -- persisted state ---------------------------------------------------

    def load_sorter_state(self) -> SorterState:
        return load_sorter_state(self.store, self.settings.app_version)

    def load_selected_columns(self, available: Sequence[str] | None = None) -> list[str]:
        saved = load_selected_columns(self.store)
        if available:
            return order_selection(saved, list(available))
        return saved

    def save_selected_columns(self, columns: Sequence[str]) -> Path:
        return save_selected_columns(self.store, list(columns))

    def read_errors(self) -> list[dict[str, Any]]:
        return self.error_log.read()

    # -- sorter ------------------------------------------------------------

    def sort_files(self, source_dir: str | Path | None, output_dir: str | Path | None = None) -> str | None:
        """Sort ``source_dir``; return the output folder used or None on failure.

        Failures are reported with ``dialogs.show_error`` instead of raising.
        """
        try:
            with self.gate.hold("sort"):
                mover = FolderMover(error_log=self.error_log)
                final_dir = mover.sort(source_dir, output_dir, on_progress=self.progress.publish_fraction)
                result = mover.last_result
                if result is not None:
                    self._record_moved(result.moved)
                    log_summary(render_sort_summary(result))
                logger.info("Files have been sorted and moved to: %s", final_dir)
                return str(final_dir)
        except OperationInProgressError as e:
            logger.error("sort rejected: %s", e)
            self.dialogs.show_error(SORT_ERROR_TITLE, "Another operation is running. Please wait for it to finish.")
        except ValidationError as e:
            logger.error("sort: %s", e)
            self.dialogs.show_error(SORT_ERROR_TITLE, str(e))
        except OSError as e:
            # already recorded in the error log by the mover
            self.dialogs.show_error(SORT_ERROR_TITLE, f"Failed to sort the files: {e}")
        except ValueError as e:
            self.error_log.record(e, context="sort")
            self.dialogs.show_error(SORT_ERROR_TITLE, f"Failed to sort the files: {e}")
        return None

    def _record_moved(self, count: int) -> None:
        try:
            record_files_moved(self.store, count, self.settings.app_version)
        except (OSError, ValueError) as e:
            self.error_log.record(e, context="updating filesMoved")

    # -- report --------------------------------------------------------------

    def convert_sheet_to_rows(self, path: str | Path) -> list[dict[str, Any]]:
        return convert_sheet_to_rows(Path(path), self.parser)

    def load_grouped(self, path: str | Path) -> GroupedRows:
        """Parse and group a workbook; unreadable workbooks raise ValidationError."""
        source = Path(path)
        if not source.is_file():
            raise ValidationError(f"Spreadsheet not found: {source}")
        try:
            rows = self.convert_sheet_to_rows(source)
        except (OSError, SheetHeaderError):
            raise
        except Exception as e:
            raise ValidationError(f"Could not read spreadsheet {source.name}: {e}") from e
        return group_rows(rows, self.settings.group_key)

    def available_columns(self, path: str | Path) -> list[str]:
        return available_columns(self.load_grouped(path))

    def resolve_output_path(self, output_path: str | Path, fmt: ReportFormat) -> Path:
        """Return the file the report is written to.

        A folder gets the default report name. A known report extension is
        swapped for ``fmt``'s; any other suffix is kept as part of the name
        (``report.2024`` -> ``report.2024.pdf``).
        """
        target = Path(output_path)
        suffix = target.suffix.lower()
        if target.is_dir():
            target = target / f"{self.settings.default_report_name}{fmt.extension}"
        elif suffix in REPORT_EXTENSIONS:
            if suffix != fmt.extension:
                target = target.with_suffix(fmt.extension)
        else:
            target = target.with_name(target.name + fmt.extension)
        if not target.parent.is_dir():
            raise ValidationError(f"Output folder does not exist: {target.parent}")
        return target

    def _renderer(self, fmt: ReportFormat) -> DocumentRenderer:
        renderer = self.renderers.get(fmt)
        if renderer is None:
            renderer = get_renderer(fmt)
            self.renderers[fmt] = renderer
        return renderer

    def generate_report(
        self,
        source_path: str | Path | None,
        output_path: str | Path | None,
        selected_fields: Sequence[str] | None = None,
        fmt: ReportFormat | str = ReportFormat.PDF,
    ) -> ReportResult:
        """Build a grouped report; never raises for user, IO or render failures."""
        try:
            report_format = ReportFormat.parse(fmt)
        except ValueError as e:
            logger.error("report: %s", e)
            return ReportResult(success=False, message=str(e))

        try:
            with self.gate.hold("report"):
                result = self._generate(source_path, output_path, list(selected_fields or []), report_format)
        except OperationInProgressError as e:
            logger.error("report rejected: %s", e)
            return ReportResult(success=False, message="Another operation is running. Please wait.")
        except (ValidationError, SheetHeaderError) as e:
            logger.error("report: %s", e)
            return ReportResult(success=False, message=str(e))
        except RenderError as e:
            self.error_log.record(e, context="report rendering")
            return ReportResult(success=False, message=str(e))
        except (OSError, ValueError) as e:
            self.error_log.record(e, context="report")
            return ReportResult(success=False, message=f"Failed to generate the report: {e}")

        log_summary(render_report_summary(result, report_format.value))
        return result

    def _generate(
        self,
        source_path: str | Path | None,
        output_path: str | Path | None,
        fields: list[str],
        fmt: ReportFormat,
    ) -> ReportResult:
        start = time.perf_counter()
        if not source_path:
            raise ValidationError("Please select an Excel file.")
        if not output_path:
            raise ValidationError("Please select an output location.")

        self.progress.publish(0)
        grouped = self.load_grouped(source_path)
        if not grouped:
            raise ValidationError(f"No rows with a '{self.settings.group_key}' value found in {Path(source_path).name}")
        self.progress.publish(25)

        if fields:
            grouped = include_only_fields(grouped, fields, self.settings.group_key)
            columns = fields
        else:
            columns = available_columns(grouped)
        target = self.resolve_output_path(output_path, fmt)
        self.progress.publish(50)

        options = RenderOptions(
            heading_prefix=self.settings.heading_prefix,
            description_column=self.settings.description_column,
            column_titles=self.settings.column_titles,
        )
        logger.info("Rendering %d groups to %s", len(grouped), target)
        try:
            self._renderer(fmt).render(grouped, columns, target, options)
        except Exception as e:
            raise RenderError(f"An error occurred while generating the {fmt.value.upper()}: {e}") from e
        self.progress.publish(100)

        return ReportResult(
            success=True,
            message=f"Successfully generated {fmt.value.upper()} of data at {target}",
            output_path=str(target),
            groups=len(grouped),
            rows=sum(len(rows) for rows in grouped.values()),
            columns=len(columns),
            elapsed_seconds=time.perf_counter() - start,
        )
