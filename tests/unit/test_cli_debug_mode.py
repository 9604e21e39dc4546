from __future__ import annotations

from pathlib import Path

from wps_tools.cli import main as cli_main


def test_cli_debug_mode_logs_each_move(sort_source: Path, capsys):
    """--debug enables DEBUG lines for the run, including per-file sorter decisions."""
    code = cli_main(["--debug", "sort", str(sort_source)])

    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG moved 12-345-6789-01-234_a.txt" in out
    assert "DEBUG no identifier in no_id.txt, skipped" in out


def test_cli_without_debug_has_no_debug_lines(sort_source: Path, capsys):
    assert cli_main(["sort", str(sort_source)]) == 0
    assert "DEBUG" not in capsys.readouterr().out
