from __future__ import annotations

import re

"""Filename identifier extraction.

Identifiers look like ``12-345-6789-01-234`` inside a filename and are returned
with the hyphens removed (``12345678901234``). Some filenames carry a ``-0-``
placeholder segment between identifier parts; it collapses to ``-`` before
matching.
"""

__all__ = [
    "extract_identifier",
    "IDENTIFIER_PATTERN",
]

IDENTIFIER_PATTERN = re.compile(r"\d{2}-\d{3}-\d{4}-\d{2}-\d{3}", re.ASCII)
_DISALLOWED_CHARS = re.compile(r"[^\w\s-]", re.ASCII)


def extract_identifier(filename: str) -> str:
    """Return the normalized identifier found in ``filename`` or ``""``."""
    cleaned = _DISALLOWED_CHARS.sub("", filename).strip()
    normalized = cleaned.replace("-0-", "-")
    match = IDENTIFIER_PATTERN.search(normalized)
    if match is None:
        return ""
    return match.group(0).replace("-", "")
