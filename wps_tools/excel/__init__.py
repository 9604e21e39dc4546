"""Spreadsheet parsing (workbook -> list of row mappings)."""
