from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from wps_tools import __version__
from wps_tools.config.loader import ConfigError, load_settings
from wps_tools.excel.reader import SheetHeaderError
from wps_tools.logging.init import set_debug, setup_logging
from wps_tools.models.report import ReportFormat
from wps_tools.services.dialogs import ConsoleDialogs
from wps_tools.services.errors import ValidationError
from wps_tools.services.orchestrator import ToolsApp

"""CLI entrypoint standing in for the desktop shell.

Commands:
- sort SOURCE [--output DIR]
- report SOURCE OUTPUT [--fields ...] [--saved-columns] [--format pdf|docx]
- columns SOURCE
- save-columns FIELD [FIELD ...] / show-columns
- errors
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so WPS_TOOLS_HOME can be pinned per working directory."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="wps-tools", description="File sorter and inspection report generator")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", type=Path, default=None, help="Settings YAML (default: config/settings.yml if present)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("sort", help="Move files into folders named after their identifier")
    s.add_argument("source", help="Folder containing the files to sort")
    s.add_argument("--output", default=None, help="Existing folder receiving the identifier folders")

    r = sub.add_parser("report", help="Generate a grouped PDF/DOCX report from a spreadsheet")
    r.add_argument("source", help="Spreadsheet (.xlsx)")
    r.add_argument("output", help="Output file or folder")
    r.add_argument("--fields", nargs="+", default=None, help="Columns to include, in output order")
    r.add_argument("--saved-columns", action="store_true", help="Use the saved column selection")
    r.add_argument("--format", choices=[f.value for f in ReportFormat], default=ReportFormat.PDF.value)

    c = sub.add_parser("columns", help="List the columns available in a spreadsheet")
    c.add_argument("source")

    sc = sub.add_parser("save-columns", help="Persist a column selection")
    sc.add_argument("fields", nargs="+")

    sub.add_parser("show-columns", help="Print the saved column selection")
    sub.add_parser("errors", help="Print the error log")
    return p.parse_args(argv)


def _cmd_sort(app: ToolsApp, args: argparse.Namespace) -> int:
    app.load_sorter_state()
    result = app.sort_files(args.source, args.output)
    if result is None:
        return EXIT_FATAL
    print(result)
    return EXIT_SUCCESS


def _cmd_report(app: ToolsApp, args: argparse.Namespace, logger: logging.Logger) -> int:
    fields = args.fields
    if args.saved_columns:
        try:
            available = app.available_columns(args.source)
        except (ValidationError, SheetHeaderError, OSError) as e:
            logger.error(f"report: {e}")
            return EXIT_FATAL
        fields = app.load_selected_columns(available)
        if not fields:
            logger.error("report: no saved columns found")
            return EXIT_FATAL
    result = app.generate_report(args.source, args.output, fields, args.format)
    if not result.success:
        logger.error(f"report: {result.message}")
        return EXIT_FATAL
    logger.info(result.message)
    return EXIT_SUCCESS


def _cmd_columns(app: ToolsApp, args: argparse.Namespace, logger: logging.Logger) -> int:
    try:
        columns = app.available_columns(args.source)
    except (ValidationError, SheetHeaderError, OSError) as e:
        logger.error(f"columns: {e}")
        return EXIT_FATAL
    if not columns:
        logger.error("columns: no columns found in the Excel data")
        return EXIT_FATAL
    for name in columns:
        print(name)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # None -> read sys.argv; an explicit [] must not fall back to pytest's argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    logger = setup_logging()
    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    setup_logging(log_file=settings.operations_log)
    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    app = ToolsApp(settings, dialogs=ConsoleDialogs())

    if args.command == "sort":
        return _cmd_sort(app, args)
    if args.command == "report":
        return _cmd_report(app, args, logger)
    if args.command == "columns":
        return _cmd_columns(app, args, logger)
    if args.command == "save-columns":
        path = app.save_selected_columns(args.fields)
        logger.info(f"Selected columns have been saved to {path}")
        return EXIT_SUCCESS
    if args.command == "show-columns":
        for name in app.load_selected_columns():
            print(name)
        return EXIT_SUCCESS
    if args.command == "errors":
        print(json.dumps(app.read_errors(), indent=2, ensure_ascii=False))
        return EXIT_SUCCESS
    return EXIT_FATAL  # pragma: no cover (argparse enforces the command set)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
