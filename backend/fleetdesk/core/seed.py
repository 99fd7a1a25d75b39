"""Seed the admin account and the default lookup rows into the database."""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.core.logging import setup_logging
from fleetdesk.core.security import hash_password
from fleetdesk.db.session import AsyncSessionLocal
from fleetdesk.models.reference import BodyType, StickerType, VehicleCategory, VehicleType
from fleetdesk.models.user import User

logger = logging.getLogger(__name__)

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "changeme123"

# (model, name, is_default): the default row fills blank defaultable columns on import.
DEFAULT_LOOKUPS = [
    (BodyType, "Sedan", True),
    (BodyType, "SUV", False),
    (BodyType, "Pickup", False),
    (VehicleCategory, "Personal", True),
    (VehicleCategory, "Commercial", False),
    (VehicleType, "Car", True),
    (VehicleType, "Truck", False),
    (VehicleType, "Motorcycle", False),
    (StickerType, "Type A", False),
    (StickerType, "Type B", False),
]


async def seed_admin_user(db: AsyncSession) -> User:
    result = await db.execute(select(User).where(User.email == ADMIN_EMAIL))
    user = result.scalar_one_or_none()
    if user is not None:
        logger.info("Admin user already exists: %s, skipping", ADMIN_EMAIL)
        return user
    user = User(
        email=ADMIN_EMAIL,
        name="Admin User",
        password_hash=hash_password(ADMIN_PASSWORD),
        role="ADMIN",
        is_active=True,
    )
    db.add(user)
    await db.flush()
    logger.info("Seeded admin user: %s", ADMIN_EMAIL)
    return user


async def seed_lookups(db: AsyncSession, actor: User) -> None:
    """Insert lookup rows that do not exist yet (matched by name)."""
    for model, name, is_default in DEFAULT_LOOKUPS:
        existing = await db.execute(select(model).where(model.name == name))
        if existing.scalars().first() is not None:
            logger.info("%s '%s' already exists, skipping", model.__tablename__, name)
            continue
        db.add(
            model(
                name=name,
                is_default=is_default,
                is_active=True,
                created_by=actor.id,
                updated_by=actor.id,
            )
        )
        logger.info("Seeded %s: %s", model.__tablename__, name)

    await db.commit()


async def run_seed() -> None:
    async with AsyncSessionLocal() as db:
        admin = await seed_admin_user(db)
        await seed_lookups(db, admin)
    logger.info("Seeding complete.")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(run_seed())
