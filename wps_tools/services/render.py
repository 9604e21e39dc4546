from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol
from xml.sax.saxutils import escape

from docx import Document
from docx.enum.section import WD_SECTION
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.shared import Emu, Pt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models.report import GroupedRows, ReportFormat

"""Document rendering for grouped inspection rows.

One section per group: a heading ``"<prefix>: <group key>"`` followed by a
table. Header cells use human readable column titles (explicit overrides
first, otherwise the trailing parenthetical is stripped: ``"Foo(Report)"`` ->
``"Foo"``). Multi-line cell text becomes one paragraph per line. The
description column is twice as wide as the others.

PDF is rendered with reportlab, DOCX with python-docx.
"""

__all__ = [
    "DocumentRenderer",
    "RenderOptions",
    "PdfRenderer",
    "DocxRenderer",
    "get_renderer",
    "column_title",
    "column_widths",
    "cell_lines",
]

_PAREN_SUFFIX = re.compile(r"\s*\([^()]*\)\s*$")
_NEWLINE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class RenderOptions:
    heading_prefix: str = "Bridge ID"
    description_column: str = "Description of Issue(Report)"
    column_titles: Mapping[str, str] = field(default_factory=dict)

    def heading(self, group_key: str) -> str:
        return f"{self.heading_prefix}: {group_key}" if self.heading_prefix else str(group_key)


class DocumentRenderer(Protocol):
    """Capability: write grouped rows to ``output_path``."""

    def render(
        self,
        grouped: GroupedRows,
        columns: Sequence[str],
        output_path: Path,
        options: RenderOptions,
    ) -> Path: ...


def column_title(name: str, overrides: Mapping[str, str] | None = None) -> str:
    if overrides and name in overrides:
        return overrides[name]
    stripped = _PAREN_SUFFIX.sub("", name).strip()
    return stripped or name


def column_widths(columns: Sequence[str], total_width: float, description_column: str) -> list[float]:
    """Split ``total_width``; the description column gets a double share."""
    if not columns:
        return []
    weights = [2 if c == description_column else 1 for c in columns]
    unit = total_width / sum(weights)
    return [w * unit for w in weights]


def _format_value(value: Any) -> str:
    if isinstance(value, datetime):
        if (value.hour, value.minute, value.second, value.microsecond) == (0, 0, 0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def cell_lines(value: Any) -> list[str]:
    """Cell text split into lines; empty list for missing/blank values."""
    if value is None:
        return []
    text = _format_value(value)
    if not text:
        return []
    return _NEWLINE.split(text)


class PdfRenderer:
    """A4 PDF, one page-section per group, bordered table with grey header."""

    margin = 0.3 * inch

    @staticmethod
    def _cell(value: Any, style: ParagraphStyle) -> Any:
        lines = cell_lines(value)
        if not lines:
            return ""
        return [Paragraph(escape(line), style) for line in lines]

    def render(
        self,
        grouped: GroupedRows,
        columns: Sequence[str],
        output_path: Path,
        options: RenderOptions,
    ) -> Path:
        styles = getSampleStyleSheet()
        heading_style = ParagraphStyle("GroupHeading", parent=styles["Normal"], fontSize=12, leading=15)
        cell_style = ParagraphStyle("Cell", parent=styles["Normal"], fontSize=9, leading=11)
        header_style = ParagraphStyle("HeaderCell", parent=cell_style, fontName="Helvetica-Bold")

        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=A4,
            leftMargin=self.margin,
            rightMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
        )
        widths = column_widths(columns, doc.width, options.description_column)

        story: list[Any] = []
        keys = list(grouped.keys())
        for index, group_key in enumerate(keys):
            story.append(Paragraph(escape(options.heading(group_key)), heading_style))
            story.append(Spacer(1, 0.35 * inch))

            table_data: list[list[Any]] = [
                [Paragraph(escape(column_title(c, options.column_titles)), header_style) for c in columns]
            ]
            for row in grouped[group_key]:
                table_data.append([self._cell(row.get(c), cell_style) for c in columns])

            tbl = Table(table_data, colWidths=widths, repeatRows=1)
            tbl.setStyle(TableStyle([
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f2f2f2")),
                ("GRID", (0, 0), (-1, -1), 0.75, colors.black),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ("LEFTPADDING", (0, 0), (-1, -1), 4),
                ("RIGHTPADDING", (0, 0), (-1, -1), 4),
            ]))
            story.append(tbl)
            if index < len(keys) - 1:
                story.append(PageBreak())

        doc.build(story)
        return output_path


class DocxRenderer:
    """Word document, one section (new page) per group."""

    font_name = "Verdana"

    def render(
        self,
        grouped: GroupedRows,
        columns: Sequence[str],
        output_path: Path,
        options: RenderOptions,
    ) -> Path:
        doc = Document()
        normal = doc.styles["Normal"]
        normal.font.name = self.font_name
        normal.font.size = Pt(10)

        for index, group_key in enumerate(grouped.keys()):
            section = doc.sections[0] if index == 0 else doc.add_section(WD_SECTION.NEW_PAGE)
            usable = section.page_width - section.left_margin - section.right_margin
            widths = column_widths(columns, usable, options.description_column)

            heading = doc.add_paragraph()
            run = heading.add_run(options.heading(group_key))
            run.font.size = Pt(12)
            heading.paragraph_format.space_after = Pt(10)

            table = doc.add_table(rows=1, cols=len(columns))
            table.style = "Table Grid"
            table.alignment = WD_TABLE_ALIGNMENT.CENTER
            table.autofit = False
            for cell, col in zip(table.rows[0].cells, columns, strict=True):
                cell.text = column_title(col, options.column_titles)

            for row in grouped[group_key]:
                cells = table.add_row().cells
                for cell, col in zip(cells, columns, strict=True):
                    lines = cell_lines(row.get(col))
                    if lines:
                        cell.paragraphs[0].text = lines[0]
                        for line in lines[1:]:
                            cell.add_paragraph(line)

            for column_cells, width in zip(table.columns, widths, strict=True):
                for cell in column_cells.cells:
                    cell.width = Emu(int(width))

        doc.save(str(output_path))
        return output_path


def get_renderer(fmt: ReportFormat | str) -> DocumentRenderer:
    fmt = ReportFormat.parse(fmt)
    if fmt is ReportFormat.PDF:
        return PdfRenderer()
    return DocxRenderer()
