from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from ..models.error_record import utc_now_iso

"""JSON file stores living in the application config directory.

Files:
- ``config.json``  : sorter state {firstLaunch, version, lastOpened, filesMoved}
- ``columns.json`` : saved report column selection {"selectedColumns": [...]}
- ``errors.json``  : structured error log (see wps_tools.logging.error_log)

Every read/modify/write goes through one ``JsonStore`` per directory. The store
holds a lock so concurrent callers in the same process cannot lose updates.
Writes go to a temp file in the same directory and replace the target, so a
crash mid-write leaves the previous document intact. A document that does not
decode is treated as absent (logged at WARN) and replaced on the next write.
"""

__all__ = [
    "JsonStore",
    "SorterState",
    "get_store",
    "load_sorter_state",
    "record_files_moved",
    "load_selected_columns",
    "save_selected_columns",
    "CONFIG_FILE",
    "COLUMNS_FILE",
    "ERRORS_FILE",
]

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
COLUMNS_FILE = "columns.json"
ERRORS_FILE = "errors.json"

_stores: dict[Path, JsonStore] = {}
_stores_lock = threading.Lock()


class JsonStore:
    """Lock-guarded access point for the JSON files of one directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._lock = threading.RLock()

    def path(self, name: str) -> Path:
        return self.directory / name

    def read(self, name: str, default: Callable[[], Any] | None = None) -> Any:
        """Read ``name``; return ``default()`` (without writing) if the file is absent or corrupt."""
        with self._lock:
            fp = self.path(name)
            if not fp.exists():
                return default() if default is not None else None
            try:
                return json.loads(fp.read_text(encoding="utf-8"))
            except ValueError as e:
                # JSONDecodeError and UnicodeDecodeError are both ValueErrors
                logger.warning("ignoring unreadable %s: %s", fp, e)
                return default() if default is not None else None

    def write(self, name: str, data: Any) -> Path:
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            fp = self.path(name)
            text = json.dumps(data, indent=2, ensure_ascii=False)
            fd, tmp = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp, fp)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
            return fp

    def update(self, name: str, default: Callable[[], Any], mutate: Callable[[Any], Any]) -> Any:
        """Read-modify-write under the lock. ``mutate`` returns the new document."""
        with self._lock:
            current = self.read(name, default)
            updated = mutate(current)
            self.write(name, updated)
            return updated


def get_store(directory: Path) -> JsonStore:
    """Return the single store instance owning ``directory``."""
    key = Path(directory).expanduser().resolve()
    with _stores_lock:
        store = _stores.get(key)
        if store is None:
            store = JsonStore(key)
            _stores[key] = store
        return store


@dataclass
class SorterState:
    firstLaunch: bool  # noqa: N815 (JSON keys)
    version: str
    lastOpened: str  # noqa: N815
    filesMoved: int  # noqa: N815

    @classmethod
    def default(cls, version: str) -> SorterState:
        return cls(firstLaunch=False, version=version, lastOpened=utc_now_iso(), filesMoved=0)

    @classmethod
    def from_dict(cls, data: Any, version: str) -> SorterState:
        base = cls.default(version)
        if not isinstance(data, dict):
            return base
        try:
            moved = int(data.get("filesMoved", 0) or 0)
        except (TypeError, ValueError):
            moved = 0
        return cls(
            firstLaunch=bool(data.get("firstLaunch", base.firstLaunch)),
            version=str(data.get("version", base.version)),
            lastOpened=str(data.get("lastOpened", base.lastOpened)),
            filesMoved=moved,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_sorter_state(store: JsonStore, version: str) -> SorterState:
    """Load sorter state, creating the default file when it is absent.

    ``lastOpened`` is refreshed on every load.
    """
    def _touch(data: dict[str, Any]) -> dict[str, Any]:
        state = SorterState.from_dict(data, version)
        state.lastOpened = utc_now_iso()
        return state.to_dict()

    updated = store.update(CONFIG_FILE, lambda: SorterState.default(version).to_dict(), _touch)
    return SorterState.from_dict(updated, version)


def record_files_moved(store: JsonStore, count: int, version: str) -> SorterState:
    """Add ``count`` to the persisted filesMoved counter."""
    def _add(data: dict[str, Any]) -> dict[str, Any]:
        state = SorterState.from_dict(data, version)
        state.filesMoved += count
        return state.to_dict()

    updated = store.update(CONFIG_FILE, lambda: SorterState.default(version).to_dict(), _add)
    logger.debug("filesMoved += %d -> %d", count, updated["filesMoved"])
    return SorterState.from_dict(updated, version)


def load_selected_columns(store: JsonStore) -> list[str]:
    data = store.read(COLUMNS_FILE, lambda: {"selectedColumns": []})
    columns = data.get("selectedColumns") if isinstance(data, dict) else data
    if not isinstance(columns, list):
        return []
    return [str(c) for c in columns]


def save_selected_columns(store: JsonStore, columns: list[str]) -> Path:
    return store.write(COLUMNS_FILE, {"selectedColumns": list(columns)})
