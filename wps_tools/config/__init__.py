"""Settings loading and JSON-file persistence."""
