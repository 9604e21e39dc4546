from __future__ import annotations

import json
import secrets
import string
import time
import traceback
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the structured error log.

One record is appended to ``errors.json`` per failure. The record shape is fixed:

    {"date": ISO8601 UTC, "error": {"stack", "message", "name"}, "errorId": base36 token}

The first entry of a fresh log is the informational placeholder returned by
``ErrorRecord.placeholder()``.
"""

__all__ = [
    "ErrorDetail",
    "ErrorRecord",
    "generate_error_id",
    "PLACEHOLDER_ERROR_ID",
    "utc_now_iso",
]

BASE36_ALPHABET = string.digits + string.ascii_uppercase
PLACEHOLDER_ERROR_ID = "00000000-0000-0000-0000-000000000000"
NO_STACK = "No stack available"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_error_id() -> str:
    """Return an upper-case base36 token of 13 characters.

    9 random characters followed by the last 4 characters of the current
    millisecond clock in base36.
    """
    random_part = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(9))
    time_part = _to_base36(int(time.time() * 1000))[-4:]
    return random_part + time_part


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorDetail:
    stack: str
    message: str
    name: str


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for the JSON array error log.

    Attributes:
        date: ISO8601 UTC timestamp with 'Z' suffix
        error: stack / message / exception class name
        errorId: random base36 token used to reference the failure
    """
    date: str
    error: ErrorDetail
    errorId: str  # noqa: N815 (field name is part of the file format)

    @staticmethod
    def create(name: str, message: str, stack: str | None = None) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time.

        Parameters:
            name: Error classification (usually the exception class name)
            message: Human readable description
            stack: Formatted traceback, if any

        Returns:
            New ErrorRecord with a fresh errorId
        """
        return ErrorRecord(
            date=utc_now_iso(),
            error=ErrorDetail(stack=stack or NO_STACK, message=message, name=name or "Unknown"),
            errorId=generate_error_id(),
        )

    @staticmethod
    def from_exception(exc: BaseException) -> ErrorRecord:
        if exc.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        else:
            stack = None
        return ErrorRecord.create(type(exc).__name__, str(exc), stack)

    @staticmethod
    def placeholder() -> ErrorRecord:
        return ErrorRecord(
            date=utc_now_iso(),
            error=ErrorDetail(stack="No errors yet", message="No errors", name="Info"),
            errorId=PLACEHOLDER_ERROR_ID,
        )

    def to_dict(self) -> dict[str, object]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)
