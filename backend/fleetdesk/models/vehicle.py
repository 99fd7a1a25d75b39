import uuid

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleetdesk.db.base import AuditMixin, Base, TimestampMixin, UUIDMixin
from fleetdesk.models.reference import BodyType, Client, VehicleCategory, VehicleType


class Vehicle(Base, UUIDMixin, TimestampMixin, AuditMixin):
    __tablename__ = "vehicles"

    registration_no: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    make: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    chassis_no: Mapped[str] = mapped_column(String(100), nullable=False)
    engine_no: Mapped[str] = mapped_column(String(100), nullable=False)
    seating_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cubic_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gross_weight: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)

    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True
    )
    body_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("body_types.id"), nullable=False
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vehicle_categories.id"), nullable=False
    )
    vehicle_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vehicle_types.id"), nullable=False
    )

    client: Mapped[Client] = relationship(Client)
    body_type: Mapped[BodyType] = relationship(BodyType)
    category: Mapped[VehicleCategory] = relationship(VehicleCategory)
    vehicle_type: Mapped[VehicleType] = relationship(VehicleType)
