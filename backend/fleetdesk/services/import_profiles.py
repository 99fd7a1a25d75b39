"""What each importable entity looks like in a spreadsheet.

A profile lists the columns, how each is coerced, which columns are references
to lookup tables, and the natural key used for duplicate detection. The import
pipeline is generic over profiles.
"""
from dataclasses import dataclass, field
from typing import Any, Callable

from fleetdesk.models.sticker import StickerStatus, StickerStock
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.services.reference_resolver import ImportMode, ReferenceCategory

# Field kinds understood by the pipeline's coercers.
TEXT = "text"
YEAR = "year"
INT = "int"
FLOAT = "float"
DATE = "date"

# Largest value a Numeric(10, 2) column holds.
GROSS_WEIGHT_MAX = 99_999_999.99


@dataclass(frozen=True)
class FieldSpec:
    column: str
    kind: str = TEXT
    required: bool = True
    description: str = ""
    example: Any = None
    maximum: Any = None

    @property
    def attr(self) -> str:
        return self.column


@dataclass(frozen=True)
class ReferenceField:
    name_column: str
    id_column: str
    category: ReferenceCategory
    target: str
    defaultable: bool = False
    owner: bool = False
    description: str = ""
    example: Any = None

    def column_for(self, mode: ImportMode) -> str:
        return self.id_column if mode == ImportMode.IDS else self.name_column


@dataclass(frozen=True)
class ImportProfile:
    entity: str
    model: type
    key: FieldSpec
    key_label: str
    fields: tuple[FieldSpec, ...]
    references: tuple[ReferenceField, ...]
    normalize_key: Callable[[str], str] = str.strip
    aliases: dict[str, str] = field(default_factory=dict)
    defaults: dict[str, Any] = field(default_factory=dict)
    samples: tuple[dict[str, Any], ...] = ()

    def required_columns(self, mode: ImportMode, owner_supplied: bool = False) -> list[str]:
        columns = [self.key.column] + [f.column for f in self.fields if f.required]
        for ref in self.references:
            if ref.owner and owner_supplied:
                continue
            columns.append(ref.column_for(mode))
        return columns

    def categories(self, owner_supplied: bool = False) -> list[ReferenceCategory]:
        return [
            ref.category for ref in self.references
            if not (ref.owner and owner_supplied)
        ]

    def template_columns(self) -> list[tuple[str, str, Any]]:
        """(column, description, example) for the names-mode template, in sheet order."""
        columns = [(self.key.column, self.key.description, self.key.example)]
        columns += [(f.column, f.description, f.example) for f in self.fields]
        columns += [(r.name_column, r.description, r.example) for r in self.references]
        return columns


def _registration_key(value: str) -> str:
    return value.strip().upper()


VEHICLE_PROFILE = ImportProfile(
    entity="vehicle",
    model=Vehicle,
    key=FieldSpec("registration_no", description="Vehicle registration number (required)", example="KAA 123A"),
    key_label="Vehicle with registration number",
    normalize_key=_registration_key,
    fields=(
        FieldSpec("make", description="Vehicle manufacturer (required)", example="Toyota, Honda, etc."),
        FieldSpec("model", description="Vehicle model (required)", example="Corolla, Civic, etc."),
        FieldSpec("year", YEAR, description="Manufacturing year (required)", example="2023"),
        FieldSpec("chassis_no", description="Vehicle chassis number (required)", example="ABCD1234567890"),
        FieldSpec("engine_no", description="Vehicle engine number (required)", example="ENG123456"),
        FieldSpec("seating_capacity", INT, required=False, description="Number of seats (optional)", example="5"),
        FieldSpec("cubic_capacity", INT, required=False, description="Engine cubic capacity (optional)", example="1800"),
        FieldSpec(
            "gross_weight", FLOAT, required=False, description="Gross weight in kg (optional)", example="1500",
            maximum=GROSS_WEIGHT_MAX,
        ),
    ),
    references=(
        ReferenceField(
            "body_type", "body_type_id", ReferenceCategory.BODY_TYPE, "body_type_id",
            defaultable=True, description="Body type name (or ID in ID mode)", example="Sedan, SUV, etc.",
        ),
        ReferenceField(
            "category", "category_id", ReferenceCategory.VEHICLE_CATEGORY, "category_id",
            defaultable=True, description="Vehicle category name (or ID in ID mode)",
            example="Personal, Commercial, etc.",
        ),
        ReferenceField(
            "vehicle_type", "vehicle_type_id", ReferenceCategory.VEHICLE_TYPE, "vehicle_type_id",
            defaultable=True, description="Vehicle type name (or ID in ID mode)", example="Car, Truck, etc.",
        ),
        ReferenceField(
            "client", "client_id", ReferenceCategory.CLIENT, "client_id",
            owner=True, description="Owner/client name (or ID in ID mode)", example="John Doe",
        ),
    ),
    aliases={
        "owner": "client",
        "customer": "client",
        "owner_id": "client_id",
        "customer_id": "client_id",
        "registration_number": "registration_no",
        "chassis_number": "chassis_no",
        "engine_number": "engine_no",
        "vehicle_category": "category",
        "vehicle_category_id": "category_id",
    },
    samples=(
        {
            "registration_no": "ABC123", "make": "Toyota", "model": "Corolla", "year": 2023,
            "body_type": "Sedan", "category": "Personal", "vehicle_type": "Car", "client": "John Doe",
            "chassis_no": "ABCD1234567890", "engine_no": "ENG123456",
            "seating_capacity": 5, "cubic_capacity": 1800, "gross_weight": 1500,
        },
        {
            "registration_no": "XYZ789", "make": "Honda", "model": "Civic", "year": 2022,
            "body_type": "Sedan", "category": "Personal", "vehicle_type": "Car", "client": "Jane Smith",
            "chassis_no": "WXYZ7654321098", "engine_no": "ENG654321",
            "seating_capacity": 5, "cubic_capacity": 1600, "gross_weight": 1400,
        },
    ),
)


STICKER_STOCK_PROFILE = ImportProfile(
    entity="sticker_stock",
    model=StickerStock,
    key=FieldSpec("serial_number", description="Sticker serial number (required)", example="STK123456"),
    key_label="Sticker with serial number",
    fields=(
        FieldSpec(
            "received_at", DATE,
            description="Date received (required); DD/MM/YYYY or a spreadsheet date cell",
            example="15/01/2024",
        ),
    ),
    references=(
        ReferenceField(
            "sticker_type", "sticker_type_id", ReferenceCategory.STICKER_TYPE, "sticker_type_id",
            description="Sticker type name (or ID in ID mode)", example="Type A",
        ),
        ReferenceField(
            "insurer", "insurer_id", ReferenceCategory.INSURER, "insurer_id",
            description="Insurer name (or ID in ID mode)", example="Insurer X",
        ),
    ),
    # camelCase headers from older templates normalize to these.
    aliases={
        "serialnumber": "serial_number",
        "stickertype": "sticker_type",
        "receivedat": "received_at",
        "received_date": "received_at",
    },
    defaults={"sticker_status": StickerStatus.AVAILABLE.value},
    samples=(
        {"serial_number": "STK123456", "sticker_type": "Type A", "insurer": "Insurer X", "received_at": "15/01/2024"},
        {"serial_number": "STK123457", "sticker_type": "Type B", "insurer": "Insurer Y", "received_at": "16/01/2024"},
    ),
)
