"""SQL-backed record store used by the import pipeline.

The pipeline only needs a handful of operations: the set of natural keys
already on file, snapshots of lookup tables, id existence checks, and
single-row inserts. Each insert opens its own session so that rows of one
write batch can run concurrently without sharing a connection.
"""
import logging
import uuid
from datetime import date
from typing import Any

from sqlalchemy import Date, select
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleetdesk.models.reference import (
    BodyType,
    Client,
    Insurer,
    StickerType,
    VehicleCategory,
    VehicleType,
)
from fleetdesk.schemas.imports import ReferenceEntry
from fleetdesk.services import audit as audit_svc
from fleetdesk.services.import_errors import DuplicateKeyError, PersistenceError
from fleetdesk.services.import_profiles import ImportProfile
from fleetdesk.services.reference_resolver import ReferenceCategory

logger = logging.getLogger(__name__)

CATEGORY_MODELS = {
    ReferenceCategory.CLIENT: Client,
    ReferenceCategory.BODY_TYPE: BodyType,
    ReferenceCategory.VEHICLE_CATEGORY: VehicleCategory,
    ReferenceCategory.VEHICLE_TYPE: VehicleType,
    ReferenceCategory.INSURER: Insurer,
    ReferenceCategory.STICKER_TYPE: StickerType,
}

UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code == UNIQUE_VIOLATION
    return "unique" in str(orig).lower()


class SqlRecordStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def existing_keys(self, profile: ImportProfile) -> set[str]:
        column = getattr(profile.model, profile.key.attr)
        async with self.session_factory() as db:
            result = await db.execute(select(column))
            return {profile.normalize_key(value) for value in result.scalars().all() if value}

    async def reference_entries(self, category: ReferenceCategory) -> list[ReferenceEntry]:
        model = CATEGORY_MODELS[category]
        stmt = (
            select(model.id, model.name, model.is_default)
            .where(model.is_active.is_(True))
            .order_by(model.name.asc())
        )
        async with self.session_factory() as db:
            rows = (await db.execute(stmt)).all()
        return [ReferenceEntry(id=str(row.id), name=row.name, is_default=row.is_default) for row in rows]

    async def default_entry(self, category: ReferenceCategory) -> ReferenceEntry | None:
        model = CATEGORY_MODELS[category]
        stmt = (
            select(model.id, model.name, model.is_default)
            .where(model.is_active.is_(True), model.is_default.is_(True))
            .order_by(model.name.asc())
            .limit(1)
        )
        async with self.session_factory() as db:
            row = (await db.execute(stmt)).first()
        if row is None:
            return None
        return ReferenceEntry(id=str(row.id), name=row.name, is_default=True)

    async def exists(self, category: ReferenceCategory, entity_id: str) -> bool:
        try:
            entity_uuid = uuid.UUID(str(entity_id))
        except ValueError:
            return False
        model = CATEGORY_MODELS[category]
        stmt = select(model.id).where(model.id == entity_uuid, model.is_active.is_(True))
        async with self.session_factory() as db:
            return (await db.execute(stmt)).scalar_one_or_none() is not None

    async def insert(self, profile: ImportProfile, values: dict[str, Any], actor_id: uuid.UUID) -> uuid.UUID:
        key = values.get(profile.key.attr)
        record = profile.model(
            **self._to_column_types(profile, values),
            created_by=actor_id,
            updated_by=actor_id,
            is_active=True,
        )
        async with self.session_factory() as db:
            db.add(record)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                if _is_unique_violation(exc):
                    raise DuplicateKeyError(
                        f"{profile.key_label} '{key}' already exists",
                        field=profile.key.column,
                        value=key,
                    ) from exc
                raise PersistenceError(
                    f"Record for '{key}' violates a database constraint", value=key
                ) from exc
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Insert of %s '%s' failed: %s", profile.entity, key, exc)
                raise PersistenceError(f"Could not save record for '{key}'", value=key) from exc
        return record.id

    async def record_audit(
        self,
        action: str,
        entity_type: str,
        actor_id: uuid.UUID,
        after: dict[str, Any] | None = None,
    ) -> None:
        try:
            async with self.session_factory() as db:
                await audit_svc.log(db, action=action, entity_type=entity_type, actor_id=actor_id, after=after)
                await db.commit()
        except SQLAlchemyError:
            # Imported rows are already committed at this point.
            logger.exception("Could not write audit entry for %s", action)

    @staticmethod
    def _to_column_types(profile: ImportProfile, values: dict[str, Any]) -> dict[str, Any]:
        columns = profile.model.__table__.columns
        converted: dict[str, Any] = {}
        for name, value in values.items():
            column_type = columns[name].type if name in columns else None
            if isinstance(value, str) and isinstance(column_type, UUID):
                try:
                    value = uuid.UUID(value)
                except ValueError as exc:
                    raise PersistenceError(f"'{value}' is not a valid id for {name}", field=name, value=value) from exc
            elif isinstance(value, str) and isinstance(column_type, Date):
                value = date.fromisoformat(value)
            converted[name] = value
        return converted
