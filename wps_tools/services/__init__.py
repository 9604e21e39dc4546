"""Sorter and report pipelines plus their orchestration."""
