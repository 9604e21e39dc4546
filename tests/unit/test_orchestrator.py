from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from wps_tools.models.report import ReportFormat
from wps_tools.services.dialogs import ConsoleDialogs
from wps_tools.services.errors import OperationInProgressError
from wps_tools.services.orchestrator import OperationGate, ToolsApp
from wps_tools.services.progress import ProgressChannel

"""Unit tests for ToolsApp orchestration (sort + report)."""

IDENT_FILE = "12-345-6789-01-234_a.txt"
IDENT_FOLDER = "12345678901234"

ROWS = [
    {"Asset Name": "A", "x": 1, "y": "p"},
    {"Asset Name": "", "x": 2, "y": "q"},
    {"Asset Name": "A", "x": 3, "y": "r"},
    {"x": 4},
    {"Asset Name": "B", "x": 5, "y": "s"},
]


class FakeParser:
    def __init__(self, rows):
        self.rows = rows

    def parse(self, path):
        return [dict(r) for r in self.rows]


class RecordingRenderer:
    def __init__(self, fail: Exception | None = None):
        self.calls = []
        self.fail = fail

    def render(self, grouped, columns, output_path, options):
        if self.fail is not None:
            raise self.fail
        self.calls.append((grouped, list(columns), output_path, options))
        output_path.write_bytes(b"rendered")
        return output_path


@pytest.fixture()
def dialogs():
    return ConsoleDialogs(stream=None)


@pytest.fixture()
def events():
    return []


@pytest.fixture()
def app(settings, dialogs, events):
    channel = ProgressChannel()
    channel.subscribe(events.append)
    return ToolsApp(settings, dialogs=dialogs, progress=channel)


@pytest.fixture()
def report_app(settings, dialogs, events):
    channel = ProgressChannel()
    channel.subscribe(events.append)
    renderer = RecordingRenderer()
    tools = ToolsApp(
        settings,
        dialogs=dialogs,
        parser=FakeParser(ROWS),
        renderers={ReportFormat.PDF: renderer, ReportFormat.DOCX: renderer},
        progress=channel,
    )
    return tools, renderer


@pytest.fixture()
def workbook(temp_workdir: Path) -> Path:
    p = temp_workdir / "data" / "sheet.xlsx"
    p.write_bytes(b"placeholder")
    return p


class TestOperationGate:
    def test_hold_rejects_second_operation(self):
        gate = OperationGate()
        with gate.hold("sort"):
            assert gate.busy
            assert gate.current == "sort"
            with pytest.raises(OperationInProgressError, match="sort"):
                with gate.hold("report"):
                    pass
        assert not gate.busy
        assert gate.current is None

    def test_hold_released_after_exception(self):
        gate = OperationGate()
        with pytest.raises(RuntimeError):
            with gate.hold("sort"):
                raise RuntimeError("boom")
        with gate.hold("report"):
            assert gate.busy


class TestSortFiles:
    def test_sort_files_success(self, app, sort_source, temp_workdir, events):
        out = temp_workdir / "out"
        out.mkdir()

        result = app.sort_files(str(sort_source), str(out))

        assert result == str(out)
        assert (out / IDENT_FOLDER / IDENT_FILE).exists()
        assert (sort_source / "no_id.txt").exists()
        assert events == [50.0]
        assert app.load_sorter_state().filesMoved == 1

    def test_sort_files_counter_accumulates(self, app, temp_workdir):
        for i in range(2):
            src = temp_workdir / f"src{i}"
            src.mkdir()
            (src / f"{i}2-345-6789-01-234.pdf").write_bytes(b"x")
            (src / f"{i}3-345-6789-01-234.pdf").write_bytes(b"x")
            app.sort_files(src)

        state = json.loads((temp_workdir / "home" / "config.json").read_text(encoding="utf-8"))
        assert state["filesMoved"] == 4

    def test_sort_files_missing_source_shows_dialog(self, app, dialogs, temp_workdir):
        result = app.sort_files(str(temp_workdir / "missing"))

        assert result is None
        assert len(dialogs.errors) == 1
        title, message = dialogs.errors[0]
        assert title == "Error Sorting Files"
        assert "does not exist" in message
        # validation failures are not written to the error log
        assert not (temp_workdir / "home" / "errors.json").exists()

    def test_sort_files_rejected_while_busy(self, app, dialogs, sort_source):
        with app.gate.hold("report"):
            result = app.sort_files(str(sort_source))

        assert result is None
        assert "Another operation" in dialogs.errors[0][1]
        assert (sort_source / IDENT_FILE).exists()

    def test_sort_files_move_failure_is_logged(self, app, dialogs, sort_source, temp_workdir):
        with patch("wps_tools.services.sorter.shutil.move", side_effect=PermissionError("in use")):
            result = app.sort_files(str(sort_source))

        assert result is None
        assert dialogs.errors[0][1].startswith("Failed to sort the files")
        entries = app.read_errors()
        assert len(entries) == 2
        assert entries[-1]["error"]["name"] == "PermissionError"
        assert not app.gate.busy

    def test_sort_files_with_corrupt_config_still_moves(self, app, sort_source, temp_workdir):
        home = temp_workdir / "home"
        (home / "config.json").write_text('{"filesMoved": 3', encoding="utf-8")
        out = temp_workdir / "out"
        out.mkdir()

        result = app.sort_files(str(sort_source), str(out))

        assert result == str(out)
        assert (out / IDENT_FOLDER / IDENT_FILE).exists()
        assert json.loads((home / "config.json").read_text(encoding="utf-8"))["filesMoved"] == 1

    def test_sort_files_move_failure_with_corrupt_error_log(self, app, dialogs, sort_source, temp_workdir):
        (temp_workdir / "home" / "errors.json").write_text('[{"date": "x"', encoding="utf-8")

        with patch("wps_tools.services.sorter.shutil.move", side_effect=PermissionError("in use")):
            result = app.sort_files(str(sort_source))

        assert result is None
        assert dialogs.errors[0][1].startswith("Failed to sort the files")
        entries = app.read_errors()
        assert len(entries) == 2
        assert entries[-1]["error"]["name"] == "PermissionError"

    def test_sort_files_counter_value_error_is_logged(self, app, dialogs, sort_source, temp_workdir):
        out = temp_workdir / "out"
        out.mkdir()
        with patch("wps_tools.services.orchestrator.record_files_moved", side_effect=ValueError("bad state")):
            result = app.sort_files(str(sort_source), str(out))

        assert result == str(out)
        assert dialogs.errors == []
        assert app.read_errors()[-1]["error"]["message"] == "bad state"

    def test_sort_files_unexpected_value_error_shows_dialog(self, app, dialogs, sort_source):
        with patch("wps_tools.services.orchestrator.FolderMover.sort", side_effect=ValueError("bad path")):
            result = app.sort_files(str(sort_source))

        assert result is None
        assert dialogs.errors[0] == ("Error Sorting Files", "Failed to sort the files: bad path")
        assert app.read_errors()[-1]["error"]["name"] == "ValueError"
        assert not app.gate.busy

    def test_dialog_passthrough(self, settings):
        tools = ToolsApp(settings, dialogs=ConsoleDialogs("src", "out", "book.xlsx"))
        assert tools.select_source_folder() == "src"
        assert tools.select_output_folder() == "out"
        assert tools.select_spreadsheet_file() == "book.xlsx"


class TestGenerateReport:
    def test_generate_report_with_fields(self, report_app, workbook, temp_workdir, events):
        tools, renderer = report_app

        result = tools.generate_report(workbook, temp_workdir / "out.pdf", ["x"], "pdf")

        assert result.success is True
        assert "PDF" in result.message
        assert result.output_path == str(temp_workdir / "out.pdf")
        assert result.groups == 2
        assert result.rows == 3
        grouped, columns, target, options = renderer.calls[0]
        assert grouped == {"A": [{"x": 1}, {"x": 3}], "B": [{"x": 5}]}
        assert columns == ["x"]
        assert options.heading("A") == "Bridge ID: A"
        assert events == [0.0, 25.0, 50.0, 100.0]

    def test_generate_report_without_fields_uses_available_columns(self, report_app, workbook, temp_workdir):
        tools, renderer = report_app

        result = tools.generate_report(workbook, temp_workdir / "out.docx", [], ReportFormat.DOCX)

        assert result.success is True
        grouped, columns, _, _ = renderer.calls[0]
        assert columns == ["Asset Name", "x", "y"]
        assert list(grouped) == ["A", "B"]

    def test_generate_report_output_folder_gets_default_name(self, report_app, workbook, temp_workdir):
        tools, _ = report_app
        result = tools.generate_report(workbook, temp_workdir, ["x"], "docx")
        assert result.output_path == str(temp_workdir / "maintenance_report.docx")

    def test_generate_report_keeps_unknown_suffix_in_name(self, report_app, workbook, temp_workdir):
        tools, _ = report_app
        result = tools.generate_report(workbook, temp_workdir / "report.txt", ["x"], "pdf")
        assert result.output_path == str(temp_workdir / "report.txt.pdf")

    def test_generate_report_keeps_dotted_stem(self, report_app, workbook, temp_workdir):
        tools, _ = report_app
        result = tools.generate_report(workbook, temp_workdir / "report.2024", ["x"], "pdf")
        assert result.output_path == str(temp_workdir / "report.2024.pdf")

    def test_generate_report_swaps_other_report_extension(self, report_app, workbook, temp_workdir):
        tools, _ = report_app
        result = tools.generate_report(workbook, temp_workdir / "out.docx", ["x"], "pdf")
        assert result.output_path == str(temp_workdir / "out.pdf")

    def test_generate_report_matching_extension_is_kept(self, report_app, workbook, temp_workdir):
        tools, _ = report_app
        result = tools.generate_report(workbook, temp_workdir / "Site.A.DOCX", ["x"], "docx")
        assert result.output_path == str(temp_workdir / "Site.A.DOCX")

    def test_generate_report_corrupt_error_log_does_not_raise(self, settings, workbook, temp_workdir):
        (temp_workdir / "home" / "errors.json").write_text('[{"date": "x"', encoding="utf-8")
        renderer = RecordingRenderer(fail=RuntimeError("font missing"))
        tools = ToolsApp(settings, parser=FakeParser(ROWS), renderers={ReportFormat.PDF: renderer})

        result = tools.generate_report(workbook, temp_workdir / "out.pdf", ["x"])

        assert result.success is False
        assert tools.read_errors()[-1]["error"]["name"] == "RenderError"

    def test_generate_report_value_error_becomes_result(self, report_app, workbook, temp_workdir):
        tools, _ = report_app
        with patch.object(tools, "load_grouped", side_effect=ValueError("bad cell")):
            result = tools.generate_report(workbook, temp_workdir / "out.pdf", ["x"])

        assert result.success is False
        assert result.message == "Failed to generate the report: bad cell"
        assert not tools.gate.busy

    def test_generate_report_invalid_fields(self, report_app, workbook, temp_workdir):
        tools, renderer = report_app

        result = tools.generate_report(workbook, temp_workdir / "out.pdf", ["x", "missing"])

        assert result.success is False
        assert "Invalid fields" in result.message
        assert renderer.calls == []
        assert not (temp_workdir / "out.pdf").exists()

    def test_generate_report_requires_source(self, report_app, temp_workdir):
        tools, _ = report_app
        result = tools.generate_report(None, temp_workdir / "out.pdf", ["x"])
        assert result.to_dict() == {"success": False, "message": "Please select an Excel file."}

    def test_generate_report_requires_output(self, report_app, workbook):
        tools, _ = report_app
        result = tools.generate_report(workbook, "", ["x"])
        assert result.success is False
        assert "output" in result.message

    def test_generate_report_missing_spreadsheet(self, report_app, temp_workdir):
        tools, _ = report_app
        result = tools.generate_report(temp_workdir / "nope.xlsx", temp_workdir / "out.pdf", ["x"])
        assert result.success is False
        assert "not found" in result.message

    def test_generate_report_missing_output_folder(self, report_app, workbook, temp_workdir):
        tools, _ = report_app
        result = tools.generate_report(workbook, temp_workdir / "nodir" / "out.pdf", ["x"])
        assert result.success is False
        assert "does not exist" in result.message

    def test_generate_report_unsupported_format(self, report_app, workbook, temp_workdir):
        tools, _ = report_app
        result = tools.generate_report(workbook, temp_workdir / "out.xls", ["x"], "xls")
        assert result.success is False
        assert "unsupported" in result.message

    def test_generate_report_no_groups(self, settings, workbook, temp_workdir):
        tools = ToolsApp(settings, parser=FakeParser([{"x": 1}]), renderers={ReportFormat.PDF: RecordingRenderer()})
        result = tools.generate_report(workbook, temp_workdir / "out.pdf", ["x"])
        assert result.success is False
        assert "No rows" in result.message

    def test_generate_report_render_failure_is_recorded(self, settings, workbook, temp_workdir):
        renderer = RecordingRenderer(fail=RuntimeError("font missing"))
        tools = ToolsApp(settings, parser=FakeParser(ROWS), renderers={ReportFormat.PDF: renderer})

        result = tools.generate_report(workbook, temp_workdir / "out.pdf", ["x"])

        assert result.success is False
        assert "font missing" in result.message
        entries = tools.read_errors()
        assert entries[-1]["error"]["name"] == "RenderError"
        assert not tools.gate.busy

    def test_generate_report_rejected_while_busy(self, report_app, workbook, temp_workdir):
        tools, renderer = report_app
        with tools.gate.hold("sort"):
            result = tools.generate_report(workbook, temp_workdir / "out.pdf", ["x"])
        assert result.success is False
        assert renderer.calls == []

    def test_unreadable_spreadsheet_is_a_validation_failure(self, settings, workbook, temp_workdir):
        tools = ToolsApp(settings)
        result = tools.generate_report(workbook, temp_workdir / "out.pdf", ["x"])
        assert result.success is False
        assert "Could not read spreadsheet" in result.message


class TestColumnSelection:
    def test_saved_columns_reordered_by_available(self, report_app):
        tools, _ = report_app
        tools.save_selected_columns(["y", "Asset Name"])
        assert tools.load_selected_columns() == ["y", "Asset Name"]
        assert tools.load_selected_columns(["Asset Name", "x", "y"]) == ["Asset Name", "y"]

    def test_available_columns_from_spreadsheet(self, report_app, workbook):
        tools, _ = report_app
        assert tools.available_columns(workbook) == ["Asset Name", "x", "y"]

    def test_convert_sheet_to_rows_uses_parser(self, report_app, workbook):
        tools, _ = report_app
        assert tools.convert_sheet_to_rows(workbook) == ROWS


def test_gate_shared_between_operations(settings, sort_source):
    gate = OperationGate()
    first = ToolsApp(settings, gate=gate)
    second = ToolsApp(settings, gate=gate)
    with gate.hold("sort"):
        assert second.sort_files(str(sort_source)) is None
    assert first.sort_files(str(sort_source)) == str(sort_source)
