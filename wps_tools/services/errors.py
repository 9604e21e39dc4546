from __future__ import annotations

"""Error taxonomy shared by the sorter and report pipelines.

Filesystem failures during a run are plain ``OSError`` (``IOError`` is an alias)
and are not wrapped.
"""

__all__ = [
    "ValidationError",
    "RenderError",
    "OperationInProgressError",
    "FolderValidationError",
]


class ValidationError(Exception):
    """Bad or missing user input. Nothing has been mutated when this is raised."""


class RenderError(Exception):
    """Document rendering failed downstream of grouping/filtering."""


class OperationInProgressError(Exception):
    """A sort or report run is already in flight."""


class FolderValidationError(ValidationError, OSError):
    """Sort precondition failed: missing/empty source or missing explicit output.

    Also an ``OSError`` so filesystem-oriented callers can treat it as such.
    """
