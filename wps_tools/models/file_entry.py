from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

"""Sorter models: directory entries and the outcome of a sort run."""

__all__ = [
    "FileEntry",
    "SortResult",
]


@dataclass(frozen=True)
class FileEntry:
    """A single directory entry enumerated once per sort run."""
    name: str
    is_file: bool


@dataclass(frozen=True)
class SortResult:
    """Outcome of one FolderMover run.

    ``skipped`` counts regular files without an identifier; directories are
    neither moved nor skipped.
    """
    output_dir: Path
    total_entries: int
    moved: int
    skipped: int
    elapsed_seconds: float = 0.0
