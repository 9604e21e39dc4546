"""Operational logging setup and the structured error log."""
