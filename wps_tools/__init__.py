"""WPS tools: identifier-based file sorter and grouped inspection report generator."""

__version__ = "1.0.0"
