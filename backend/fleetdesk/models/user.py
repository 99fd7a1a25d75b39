from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from fleetdesk.db.base import Base, TimestampMixin, UUIDMixin

ROLES = ("ADMIN", "MANAGER", "AGENT", "VIEWER")

# Roles allowed to run bulk imports and download import templates.
IMPORT_ROLES = ("ADMIN", "MANAGER")


class User(Base, UUIDMixin, TimestampMixin):
    """Back-office staff account. Every imported record is stamped with its id."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)  # soft delete

    @property
    def can_import(self) -> bool:
        return self.role in IMPORT_ROLES
