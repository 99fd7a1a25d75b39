"""Pydantic schemas for bulk import requests and results."""
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator


class ReferenceEntry(BaseModel):
    """Snapshot of one lookup-table row, used for name → id matching."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_default: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> str:
        return str(v)


class RowResult(BaseModel):
    row_index: int                      # 0-based position among data rows
    row_number: int                     # line number as seen in the file (header = 1)
    status: Literal["success", "error"]
    identifier: str | None = None       # id of the created record
    key: str | None = None              # natural key, e.g. registration number
    field: str | None = None
    value: str | None = None
    message: str | None = None
    error_type: str | None = None


class ImportSummary(BaseModel):
    total: int
    succeeded: int
    failed: int
    truncated: bool = False
    results: list[RowResult]

    @property
    def error_messages(self) -> list[str]:
        return [r.message for r in self.results if r.status == "error" and r.message]


class BulkUploadResult(BaseModel):
    """Flat result shape: counts plus one message per failed row."""
    total: int
    success: int
    failed: int
    truncated: bool = False
    errors: list[str] = []
