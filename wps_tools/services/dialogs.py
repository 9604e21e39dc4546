from __future__ import annotations

import sys
from typing import Protocol, TextIO

"""User interaction boundary.

The desktop shell owns the real dialogs; the pipelines only need "pick a path
or cancel" and "show a blocking message". ``ConsoleDialogs`` is the
non-interactive implementation used by the CLI: paths come from arguments and
messages go to stderr.
"""

__all__ = [
    "DialogProvider",
    "ConsoleDialogs",
]


class DialogProvider(Protocol):
    def select_source_folder(self) -> str | None: ...

    def select_output_folder(self) -> str | None: ...

    def select_spreadsheet_file(self) -> str | None: ...

    def show_error(self, title: str, message: str) -> None: ...


class ConsoleDialogs:
    def __init__(
        self,
        source_folder: str | None = None,
        output_folder: str | None = None,
        spreadsheet_file: str | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.source_folder = source_folder
        self.output_folder = output_folder
        self.spreadsheet_file = spreadsheet_file
        self.stream = stream
        self.errors: list[tuple[str, str]] = []

    def select_source_folder(self) -> str | None:
        return self.source_folder

    def select_output_folder(self) -> str | None:
        return self.output_folder

    def select_spreadsheet_file(self) -> str | None:
        return self.spreadsheet_file

    def show_error(self, title: str, message: str) -> None:
        self.errors.append((title, message))
        print(f"{title}: {message}", file=self.stream or sys.stderr)
