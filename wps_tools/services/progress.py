from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress reporting.

- ProgressTracker: single tqdm bar, only when stdout is a TTY
- ProgressChannel: fan-out of 0-100 completion events to any number of
  listeners; best-effort delivery, a failing listener never stops the run
"""

__all__ = [
    "ProgressTracker",
    "ProgressChannel",
    "is_tty_enabled",
]

logger = logging.getLogger(__name__)

ProgressListener = Callable[[float], None]


def is_tty_enabled() -> bool:
    """Return True if stdout is a TTY and a progress bar should be drawn."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over the entries of one run.

    In non-TTY environments (CI, redirected output) no bar is created so the
    log stays free of control sequences.
    """

    def __init__(self, total_files: int, *, description: str = "Processing files") -> None:
        self.total_files = total_files
        self.description = description

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_file(self, file_path: Path) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_path.name})")

    def finish_file(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class ProgressChannel:
    """Fire-and-forget progress events in percent (0-100)."""

    def __init__(self) -> None:
        self._listeners: list[ProgressListener] = []

    def subscribe(self, listener: ProgressListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, percent: float) -> None:
        value = max(0.0, min(100.0, float(percent)))
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.warning("progress listener %r failed", listener, exc_info=True)

    def publish_fraction(self, fraction: float) -> None:
        """Publish a 0..1 fraction as percent."""
        self.publish(fraction * 100)
