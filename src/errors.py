from typing import Optional, Sequence


class LedgerError(Exception):
    """Base class for conditions that abort a replay run."""


class InputFileError(LedgerError, OSError):
    """Input file is missing or cannot be read."""

    def __init__(self, filepath: str, reason: str):
        self.filepath = filepath
        self.reason = reason
        super().__init__(f"Cannot read input file {filepath!r}: {reason}")


class MalformedRecordError(LedgerError, ValueError):
    """
    A row could not be decoded into a valid transaction record.

    line_number is the 1-based line in the input file when known.
    """

    def __init__(self, message: str, line_number: Optional[int] = None, row: Optional[Sequence[str]] = None):
        self.line_number = line_number
        self.row = row
        if line_number is not None:
            message = f"line {line_number}: {message}"
        if row is not None:
            message = f"{message} (row: {list(row)!r})"
        super().__init__(message)
