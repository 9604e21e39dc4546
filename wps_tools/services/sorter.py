from __future__ import annotations

import logging
import os
import shutil
import time
from collections.abc import Callable
from pathlib import Path

from ..logging.error_log import ErrorLog
from ..models.file_entry import FileEntry, SortResult
from .errors import FolderValidationError
from .identifier import extract_identifier
from .progress import ProgressTracker

"""Folder sorting: move each file into ``<output>/<identifier>/<filename>``.

Rules:
- directories are skipped
- files without an identifier are skipped (left in place, not an error)
- identifier folders are created on demand; the output folder itself is not
- the first mkdir/move failure aborts the batch; files already moved stay moved
- progress = (index + 1) / total_entries after each move, skipped entries count
"""

__all__ = [
    "FolderMover",
    "list_entries",
]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


def list_entries(directory: Path) -> list[FileEntry]:
    """List ``directory`` once, sorted by name."""
    with os.scandir(directory) as it:
        entries = [FileEntry(name=e.name, is_file=e.is_file()) for e in it]
    return sorted(entries, key=lambda e: e.name)


class FolderMover:
    """Sorts the files of one folder into identifier folders."""

    def __init__(self, error_log: ErrorLog | None = None) -> None:
        self.error_log = error_log
        self.last_result: SortResult | None = None

    def _validate(self, source_dir: Path | str | None, output_dir: Path | str | None) -> tuple[Path, Path]:
        if not source_dir:
            raise FolderValidationError("Source folder not provided")
        source = Path(source_dir)
        if not source.is_dir():
            raise FolderValidationError(f"Source directory does not exist: {source}")
        if output_dir:
            output = Path(output_dir)
            if not output.is_dir():
                raise FolderValidationError(f"Output directory was provided but does not exist: {output}")
        else:
            output = source
        return source, output

    def _fail(self, exc: OSError, context: str) -> None:
        if self.error_log is not None:
            self.error_log.record(exc, context=context)
        else:
            logger.error("%s: %s", context, exc)

    def sort(
        self,
        source_dir: Path | str | None,
        output_dir: Path | str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> Path:
        """Sort ``source_dir`` into ``output_dir`` (defaults to ``source_dir``).

        Args:
            source_dir: Folder whose files are sorted (not recursive)
            output_dir: Existing folder receiving the identifier folders
            on_progress: Receives a fraction in (0, 1] after each move

        Returns:
            The output directory actually used

        Raises:
            FolderValidationError: Missing/empty source or missing explicit output
            OSError: mkdir or move failure (batch aborted, no rollback)
        """
        start = time.perf_counter()
        source, output = self._validate(source_dir, output_dir)

        try:
            entries = list_entries(source)
        except OSError as e:
            self._fail(e, f"listing {source}")
            raise
        if not entries:
            raise FolderValidationError(f"No files found in source directory: {source}")

        total = len(entries)
        moved = 0
        skipped = 0
        logger.info("Sorting %d entries from %s into %s", total, source, output)

        with ProgressTracker(total, description="Sorting files") as progress:
            for index, entry in enumerate(entries):
                progress.start_file(Path(entry.name))
                if not entry.is_file:
                    progress.finish_file()
                    continue

                identifier = extract_identifier(entry.name)
                if not identifier:
                    skipped += 1
                    logger.debug("no identifier in %s, skipped", entry.name)
                    progress.finish_file()
                    continue

                folder = output / identifier
                try:
                    folder.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    self._fail(e, f"creating folder {folder}")
                    raise

                src = source / entry.name
                dest = folder / entry.name
                try:
                    shutil.move(str(src), str(dest))
                except OSError as e:
                    self._fail(e, f"moving {entry.name}")
                    raise
                moved += 1
                logger.debug("moved %s -> %s", entry.name, dest)
                progress.set_postfix(moved=moved, skipped=skipped)
                progress.finish_file()

                if on_progress is not None:
                    on_progress((index + 1) / total)

        self.last_result = SortResult(
            output_dir=output,
            total_entries=total,
            moved=moved,
            skipped=skipped,
            elapsed_seconds=time.perf_counter() - start,
        )
        return output
