"""Tests for header checks and per-field coercion of import rows."""
from datetime import date, datetime

import pytest

from fleetdesk.services.import_errors import MissingColumnsError, RowValidationError
from fleetdesk.services.import_profiles import GROSS_WEIGHT_MAX
from fleetdesk.services.import_validation import (
    INT4_MAX,
    apply_aliases,
    check_columns,
    is_blank,
    optional_text,
    parse_float,
    parse_int,
    parse_sheet_date,
    parse_year,
    require_text,
)


# ─── Headers ──────────────────────────────────────────────────────────────────

def test_check_columns_names_every_missing_column():
    with pytest.raises(MissingColumnsError) as exc_info:
        check_columns(["registration_no", "make"], ["registration_no", "make", "engine_no", "year"])
    assert exc_info.value.columns == ["engine_no", "year"]
    assert "engine_no" in str(exc_info.value)


def test_check_columns_passes_when_all_present():
    check_columns(["a", "b", "c"], ["a", "c"])


def test_apply_aliases_renames_to_canonical_column():
    row = apply_aliases({"owner": "John Doe", "make": "Toyota"}, {"owner": "client"})
    assert row == {"client": "John Doe", "make": "Toyota"}


def test_apply_aliases_keeps_canonical_when_both_present():
    row = apply_aliases({"owner": "Alias", "client": "Canonical"}, {"owner": "client"})
    assert row["client"] == "Canonical"
    assert row["owner"] == "Alias"


# ─── Text ─────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("value", [None, "", "   ", float("nan")])
def test_is_blank_true(value):
    assert is_blank(value)


@pytest.mark.parametrize("value", ["x", 0, 0.0, False])
def test_is_blank_false(value):
    assert not is_blank(value)


def test_require_text_trims_and_reports_missing_field():
    assert require_text({"make": "  Toyota "}, "make") == "Toyota"
    with pytest.raises(RowValidationError, match="Missing required field 'make'") as exc_info:
        require_text({"make": " "}, "make")
    assert exc_info.value.field == "make"


def test_optional_text_renders_whole_floats_without_decimal():
    assert optional_text({"client_id": 12345.0}, "client_id") == "12345"
    assert optional_text({"client_id": None}, "client_id") is None


# ─── Numbers ──────────────────────────────────────────────────────────────────

def test_parse_year_accepts_numeric_strings_and_cells():
    assert parse_year("2020") == 2020
    assert parse_year(2020.0) == 2020


@pytest.mark.parametrize("value", ["abc", "20.5", 1899, date.today().year + 2, True])
def test_parse_year_rejects_invalid(value):
    with pytest.raises(RowValidationError, match="Invalid year value") as exc_info:
        parse_year(value)
    assert exc_info.value.field == "year"


def test_parse_int_requires_positive_whole_number():
    assert parse_int("1,800", "cubic_capacity") == 1800
    with pytest.raises(RowValidationError):
        parse_int("0", "seating_capacity")
    with pytest.raises(RowValidationError):
        parse_int("5.5", "seating_capacity")


def test_parse_float_requires_positive_number():
    assert parse_float("1500.5", "gross_weight") == 1500.5
    with pytest.raises(RowValidationError, match="Invalid gross_weight value '-3'"):
        parse_float("-3", "gross_weight")
    with pytest.raises(RowValidationError):
        parse_float("heavy", "gross_weight")


@pytest.mark.parametrize("value", ["1e200000", "1e5000000", "2147483648", 10**12, "1e10"])
def test_parse_int_rejects_values_outside_integer_column(value):
    with pytest.raises(RowValidationError) as exc_info:
        parse_int(value, "seating_capacity")
    assert exc_info.value.field == "seating_capacity"


def test_parse_int_accepts_integer_column_maximum():
    assert parse_int("2147483647", "cubic_capacity") == INT4_MAX
    assert parse_int("1.8e3", "cubic_capacity") == 1800


@pytest.mark.parametrize("value", ["1e999", "-1e999", "1e-999", "Infinity", "NaN", float("inf")])
def test_parse_float_rejects_non_finite_and_underflowing_values(value):
    with pytest.raises(RowValidationError):
        parse_float(value, "gross_weight")


def test_parse_float_honours_column_maximum():
    assert parse_float("99999999.99", "gross_weight", maximum=GROSS_WEIGHT_MAX) == 99999999.99
    with pytest.raises(RowValidationError, match="Invalid gross_weight value '100000000'"):
        parse_float("100000000", "gross_weight", maximum=GROSS_WEIGHT_MAX)


# ─── Dates ────────────────────────────────────────────────────────────────────

def test_spreadsheet_serial_converts_to_iso_date():
    assert parse_sheet_date(45306, "received_at") == "2024-01-15"


def test_spreadsheet_serial_fraction_is_floored():
    assert parse_sheet_date(45306.75, "received_at") == "2024-01-15"


def test_day_first_string_converts_to_iso_date():
    assert parse_sheet_date("15/01/2024", "received_at") == "2024-01-15"
    assert parse_sheet_date(" 5/1/2024 ", "received_at") == "2024-01-05"


def test_native_date_cells_pass_through():
    assert parse_sheet_date(datetime(2024, 1, 15, 13, 30), "received_at") == "2024-01-15"
    assert parse_sheet_date(date(2024, 1, 15), "received_at") == "2024-01-15"


@pytest.mark.parametrize(
    "value",
    [
        "2024-01-15",     # ISO strings are not an accepted input format
        "31/02/2024",     # impossible calendar date
        "15/01/1999",     # before 2000
        "01/01/2101",     # after 2100
        "45306",          # digit strings are not serials
        100,              # serial far before 2000
        "yesterday",
    ],
)
def test_invalid_dates_rejected(value):
    with pytest.raises(RowValidationError, match="Invalid received_at date") as exc_info:
        parse_sheet_date(value, "received_at")
    assert exc_info.value.field == "received_at"
