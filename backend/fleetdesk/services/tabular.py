"""Decode uploaded CSV / XLSX bytes into ordered header→value rows."""
import csv
import io
import logging
import zipfile
from pathlib import PurePath
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from fleetdesk.services.import_errors import DecodeError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("csv", "xlsx")

# Header occupies line 1 of every table.
FIRST_DATA_LINE = 2


class Row(dict):
    """Header-to-value mapping that remembers the file line it was read from."""

    def __init__(self, *args, line: int | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.line = line


def normalize_header(value: Any) -> str:
    """'Registration No ' -> 'registration_no'."""
    if value is None:
        return ""
    return "_".join(str(value).strip().lower().split())


def detect_format(filename: str | None) -> str:
    suffix = PurePath(filename or "").suffix.lower().lstrip(".")
    if suffix not in SUPPORTED_FORMATS:
        raise DecodeError(
            f"Unsupported file type '{suffix or filename}'. Please upload a CSV or XLSX file."
        )
    return suffix


def decode_table(content: bytes, fmt: str) -> list[Row]:
    """Return the data rows of the first table in ``content``.

    Raises DecodeError when the bytes are not a readable table or when the
    table has a header but no data rows.
    """
    if fmt == "csv":
        rows = _decode_csv(content)
    elif fmt == "xlsx":
        rows = _decode_xlsx(content)
    else:
        raise DecodeError(f"Unsupported file type '{fmt}'.")

    if not rows:
        raise DecodeError("File contains no data rows.")
    logger.debug("Decoded %d %s rows", len(rows), fmt)
    return rows


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _build_rows(headers: list[Any], records) -> list[Row]:
    keys = [normalize_header(h) for h in headers]
    if not any(keys):
        raise DecodeError("File has no header row.")

    rows: list[Row] = []
    for line, record in enumerate(records, start=FIRST_DATA_LINE):
        values = list(record)
        if all(_is_blank(v) for v in values):
            continue
        row = Row(line=line)
        for key, value in zip(keys, values):
            if key:
                row[key] = value
        # Short lines still expose every header key.
        for key in keys[len(values):]:
            if key:
                row.setdefault(key, None)
        rows.append(row)
    return rows


def _decode_csv(content: bytes) -> list[Row]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DecodeError(
            f"CSV is not UTF-8 encoded (byte {exc.start}). Re-save the file as 'CSV UTF-8' and upload again."
        ) from exc
    if "\x00" in text:
        raise DecodeError("File is not a valid CSV document.")
    try:
        reader = csv.reader(io.StringIO(text))
        headers = next(reader, None)
        if headers is None:
            raise DecodeError("File is empty.")
        return _build_rows(headers, reader)
    except csv.Error as exc:
        raise DecodeError(f"Could not parse CSV: {exc}") from exc


def _decode_xlsx(content: bytes) -> list[Row]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise DecodeError(f"Could not read spreadsheet: {exc}") from exc

    try:
        sheet = workbook.worksheets[0] if workbook.worksheets else None
        if sheet is None:
            raise DecodeError("Spreadsheet has no worksheets.")
        records = sheet.iter_rows(values_only=True)
        headers = next(records, None)
        if headers is None:
            raise DecodeError("Spreadsheet is empty.")
        return _build_rows(list(headers), records)
    finally:
        workbook.close()
