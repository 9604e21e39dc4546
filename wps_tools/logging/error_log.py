from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from wps_tools.config.store import ERRORS_FILE, JsonStore, get_store
from wps_tools.models.error_record import ErrorRecord

"""Structured error log (append-only JSON array).

- File: ``<config_dir>/errors.json``
- Seeded with an informational placeholder entry on first use
- One entry per failure, appended via read-modify-write on the shared store
- Every recorded error is mirrored to the operational log at ERROR level
"""

__all__ = [
    "ErrorRecord",
    "ErrorLog",
]

logger = logging.getLogger("wps_tools.errors")


class ErrorLog:
    """Write-only diagnostics sink backed by ``errors.json``."""

    def __init__(self, directory: Path, store: JsonStore | None = None) -> None:
        self._store = store if store is not None else get_store(directory)

    @property
    def file_path(self) -> Path:
        return self._store.path(ERRORS_FILE)

    def _seed(self) -> list[dict[str, Any]]:
        return [ErrorRecord.placeholder().to_dict()]

    def append(self, record: ErrorRecord) -> Path:
        def _push(entries: Any) -> list[dict[str, Any]]:
            if not isinstance(entries, list):
                entries = self._seed()
            entries.append(record.to_dict())
            return entries

        self._store.update(ERRORS_FILE, self._seed, _push)
        return self.file_path

    def record(self, exc: BaseException, context: str | None = None) -> ErrorRecord:
        """Append ``exc`` to the error log and mirror it to the operational log."""
        rec = ErrorRecord.from_exception(exc)
        prefix = f"{context}: " if context else ""
        logger.error(
            "%s%s: %s (errorId=%s)",
            prefix,
            rec.error.name,
            rec.error.message,
            rec.errorId,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        try:
            self.append(rec)
        except (OSError, ValueError) as write_error:
            # Keep the original failure visible even when the sink is unwritable
            logger.warning("could not write error log %s: %s", self.file_path, write_error)
        return rec

    def read(self) -> list[dict[str, Any]]:
        entries = self._store.read(ERRORS_FILE, self._seed)
        return entries if isinstance(entries, list) else []

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self.read())
