import enum
import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleetdesk.db.base import AuditMixin, Base, TimestampMixin, UUIDMixin
from fleetdesk.models.reference import Insurer, StickerType


class StickerStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    ISSUED = "ISSUED"
    VOIDED = "VOIDED"
    EXPIRED = "EXPIRED"


class StickerStock(Base, UUIDMixin, TimestampMixin, AuditMixin):
    """One physical sticker held in stock, received from an insurer."""

    __tablename__ = "sticker_stocks"

    serial_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    received_at: Mapped[date] = mapped_column(Date, nullable=False)
    sticker_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StickerStatus.AVAILABLE.value, index=True
    )
    sticker_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("sticker_types.id"), nullable=False
    )
    insurer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("insurers.id"), nullable=False, index=True
    )

    sticker_type: Mapped[StickerType] = relationship(StickerType)
    insurer: Mapped[Insurer] = relationship(Insurer)
