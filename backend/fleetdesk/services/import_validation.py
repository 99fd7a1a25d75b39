"""Header checks and per-field coercion for bulk import rows.

Every coercer either returns a clean Python value or raises
RowValidationError carrying the field name and the offending raw value.
"""
import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from fleetdesk.services.import_errors import MissingColumnsError, RowValidationError

# Day zero of spreadsheet date serials (1900 date system, incl. the 1900 leap-year quirk).
SPREADSHEET_EPOCH = date(1899, 12, 30)

MIN_VEHICLE_YEAR = 1900
MIN_DATE_YEAR = 2000
MAX_DATE_YEAR = 2100

_DMY_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


# ─── Headers ───

def apply_aliases(row: dict[str, Any], aliases: dict[str, str]) -> dict[str, Any]:
    """Rename alias keys to their canonical column name (canonical wins if both exist)."""
    for alias, canonical in aliases.items():
        if alias in row and canonical not in row:
            row[canonical] = row.pop(alias)
    return row


def missing_columns(row_keys: Iterable[str], required: Iterable[str]) -> list[str]:
    present = set(row_keys)
    return [col for col in required if col not in present]


def check_columns(row_keys: Iterable[str], required: Iterable[str]) -> None:
    """Fail the whole run, naming every absent column, if any required header is missing."""
    missing = missing_columns(row_keys, required)
    if missing:
        raise MissingColumnsError(missing)


# ─── Text ───

def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float):
        return math.isnan(value)
    return False


def _as_text(value: Any) -> str:
    # Spreadsheets hand back 12345.0 for a numeric-looking id column.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def require_text(row: dict[str, Any], field: str) -> str:
    value = row.get(field)
    if is_blank(value):
        raise RowValidationError(f"Missing required field '{field}'", field=field, value=value)
    return _as_text(value)


def optional_text(row: dict[str, Any], field: str) -> str | None:
    value = row.get(field)
    return None if is_blank(value) else _as_text(value)


# ─── Numbers ───

# Upper bound of a PostgreSQL INTEGER column.
INT4_MAX = 2_147_483_647

# Decimal.adjusted() past this cannot be a finite float.
_MAX_FLOAT_EXPONENT = 308


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return Decimal(str(value))
    try:
        return Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        return None


def parse_int(
    value: Any,
    field: str,
    minimum: int = 1,
    maximum: int = INT4_MAX,
) -> int:
    number = _to_decimal(value)
    # Range checks run on the Decimal so huge exponents never reach int().
    if (
        number is None
        or not number.is_finite()
        or number.adjusted() > len(str(maximum))
        or number < minimum
        or number > maximum
        or number != number.to_integral_value()
    ):
        raise RowValidationError(f"Invalid {field} value '{value}'", field=field, value=value)
    return int(number)


def parse_float(value: Any, field: str, maximum: float | None = None) -> float:
    number = _to_decimal(value)
    if (
        number is None
        or not number.is_finite()
        or number <= 0
        or number.adjusted() > _MAX_FLOAT_EXPONENT
        or (maximum is not None and number > Decimal(str(maximum)))
    ):
        raise RowValidationError(f"Invalid {field} value '{value}'", field=field, value=value)
    result = float(number)
    if not math.isfinite(result) or result <= 0:
        raise RowValidationError(f"Invalid {field} value '{value}'", field=field, value=value)
    return result


def parse_year(value: Any, field: str = "year") -> int:
    return parse_int(value, field, minimum=MIN_VEHICLE_YEAR, maximum=date.today().year + 1)


# ─── Dates ───

def parse_sheet_date(value: Any, field: str) -> str:
    """Normalize a spreadsheet or DD/MM/YYYY date to ISO 'YYYY-MM-DD'."""
    invalid = RowValidationError(
        f"Invalid {field} date '{value}'; use DD/MM/YYYY or a spreadsheet date cell",
        field=field,
        value=value,
    )

    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = SPREADSHEET_EPOCH + timedelta(days=math.floor(value))
        except (OverflowError, ValueError):
            raise invalid
    elif isinstance(value, str):
        match = _DMY_RE.fullmatch(value.strip())
        if not match:
            raise invalid
        day, month, year = (int(part) for part in match.groups())
        try:
            parsed = date(year, month, day)
        except ValueError:
            raise invalid
    else:
        raise invalid

    if not MIN_DATE_YEAR <= parsed.year <= MAX_DATE_YEAR:
        raise invalid
    return parsed.isoformat()
