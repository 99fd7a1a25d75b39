"""Lookup tables referenced by name from import files.

Each table is editable through settings screens; rows are never hard-deleted,
only deactivated. ``is_default`` marks the entry used when an import row leaves
a defaultable reference blank.
"""
import enum

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleetdesk.db.base import AuditMixin, Base, TimestampMixin, UUIDMixin


class ClientType(str, enum.Enum):
    INDIVIDUAL = "INDIVIDUAL"
    CORPORATE = "CORPORATE"


class LookupMixin(AuditMixin):
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Client(Base, UUIDMixin, TimestampMixin, AuditMixin):
    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=ClientType.INDIVIDUAL.value)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class BodyType(Base, UUIDMixin, TimestampMixin, LookupMixin):
    __tablename__ = "body_types"


class VehicleCategory(Base, UUIDMixin, TimestampMixin, LookupMixin):
    __tablename__ = "vehicle_categories"


class VehicleType(Base, UUIDMixin, TimestampMixin, LookupMixin):
    __tablename__ = "vehicle_types"


class StickerType(Base, UUIDMixin, TimestampMixin, LookupMixin):
    __tablename__ = "sticker_types"


class Insurer(Base, UUIDMixin, TimestampMixin, LookupMixin):
    __tablename__ = "insurers"

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
