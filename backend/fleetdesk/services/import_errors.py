"""Error taxonomy for bulk imports.

Run-level errors abort the whole import before any row is written and map to a
4xx response. Row errors are caught inside the pipeline and folded into the
per-row result ledger; they never reach the HTTP layer.
"""
from typing import Any


# ─── Run-level ───

class ImportRunError(Exception):
    """Base class for failures that abort an entire import run."""


class DecodeError(ImportRunError):
    """The uploaded bytes could not be read as a table, or the table is empty."""


class MissingColumnsError(ImportRunError):
    def __init__(self, columns: list[str]):
        self.columns = columns
        super().__init__(f"File is missing required columns: {', '.join(columns)}")


class ReferencePayloadError(ImportRunError):
    """A caller-supplied reference list (side-channel JSON) is malformed."""


# ─── Row-level ───

class RowError(Exception):
    error_type = "row_error"

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        self.message = message
        self.field = field
        self.value = value
        super().__init__(message)


class RowValidationError(RowError):
    error_type = "validation"


class ReferenceResolutionError(RowError):
    error_type = "unresolved_reference"


class DuplicateKeyError(RowError):
    error_type = "duplicate"


class PersistenceError(RowError):
    error_type = "persistence"
