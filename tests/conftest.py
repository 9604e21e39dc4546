# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from wps_tools.config.loader import AppSettings
from wps_tools.logging.init import reset_logging

IDENT_FILE = "12-345-6789-01-234_a.txt"
IDENT_FOLDER = "12345678901234"


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "home").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.setenv("WPS_TOOLS_HOME", str(p / "home"))
        yield p


@pytest.fixture()
def settings(temp_workdir: Path) -> AppSettings:
    return AppSettings(config_dir=temp_workdir / "home")


@pytest.fixture()
def sample_rows() -> list[dict[str, Any]]:
    return [
        {"Asset Name": "A", "x": 1},
        {"Asset Name": "", "x": 2},
        {"Asset Name": "A", "x": 3},
        {"x": 4},
    ]


@pytest.fixture()
def sample_config_yaml() -> str:
    return """group_key: Asset Name
heading_prefix: Bridge ID
description_column: Description of Issue(Report)
column_titles:
  Workflow Stage(Report): Stage
default_report_name: inspection_report
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "settings.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_workbook() -> Callable[[Path, list[list[Any]]], Path]:
    """Write ``rows`` (first row = header) to the first sheet of an xlsx file."""
    def _make(path: Path, rows: list[list[Any]], sheet_name: str = "Inspections") -> Path:
        df = pd.DataFrame(rows)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False, header=False)
        return path
    return _make


@pytest.fixture()
def inspection_workbook(temp_workdir: Path, make_workbook) -> Path:
    rows = [
        ["ID", "Asset Name", "Bridge Component(Report)", "Description of Issue(Report)", "Workflow Stage"],
        [1, "12-345-0001", "Deck", "Spalling at joint", "New"],
        [2, "12-345-0002", "Culvert", "Exposed rebar\nSection loss", "Closed"],
        [3, None, "Deck", "No asset on this row", "New"],
        [4, "12-345-0001", "Approach", "Debris accumulation", None],
    ]
    return make_workbook(temp_workdir / "data" / "inspections.xlsx", rows)


@pytest.fixture()
def sort_source(temp_workdir: Path) -> Path:
    src = temp_workdir / "data" / "incoming"
    src.mkdir()
    (src / IDENT_FILE).write_text("a", encoding="utf-8")
    (src / "no_id.txt").write_text("b", encoding="utf-8")
    return src
