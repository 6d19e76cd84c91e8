"""
Seed script for local use: creates the tables, one academy and its first admin.

Run once with env set:
  SEED_ACADEMY_NAME="Rhythm Dance Academy"
  SEED_ADMIN_USERNAME=admin
  SEED_ADMIN_PASSWORD=YourSecurePassword

  python -m academy_portal.db.seed_academy

Re-running is safe: an existing academy is reused and an existing admin gets the new password.
"""
import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.models import Admin
from academy_portal.auth.security import hash_password
from academy_portal.core.config import settings
from academy_portal.core.models import Academy
from academy_portal.db.session import AsyncSessionLocal, create_tables

logger = logging.getLogger(__name__)

DEFAULT_ACADEMY_NAME = "Demo Academy"
DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_EMAIL = "admin@example.com"


async def seed_academy(db: AsyncSession) -> None:
    name = settings.seed_academy_name or DEFAULT_ACADEMY_NAME
    academy = (
        await db.execute(select(Academy).where(func.lower(Academy.name) == name.lower()))
    ).scalar_one_or_none()
    if academy is None:
        academy = Academy(name=name, email=settings.seed_admin_email or DEFAULT_ADMIN_EMAIL, phone="")
        db.add(academy)
        await db.flush()
        logger.info("Created academy %s (%s)", name, academy.id)
    else:
        logger.info("Academy %s already exists", name)

    password = settings.seed_admin_password
    if not password:
        await db.commit()
        logger.warning("SEED_ADMIN_PASSWORD not set; skipping admin user")
        return

    username = (settings.seed_admin_username or DEFAULT_ADMIN_USERNAME).strip().lower()
    admin = (
        await db.execute(
            select(Admin).where(Admin.academy_id == academy.id, Admin.username == username)
        )
    ).scalar_one_or_none()
    if admin is None:
        db.add(
            Admin(
                academy_id=academy.id,
                name="Academy Admin",
                email=settings.seed_admin_email or DEFAULT_ADMIN_EMAIL,
                phone="",
                username=username,
                password_hash=hash_password(password),
            )
        )
        logger.info("Created admin %s", username)
    else:
        admin.password_hash = hash_password(password)
        logger.info("Reset password of existing admin %s", username)

    await db.commit()


async def main() -> None:
    logging.basicConfig(level=settings.log_level)
    await create_tables()
    async with AsyncSessionLocal() as db:
        try:
            await seed_academy(db)
        except Exception:
            await db.rollback()
            logger.exception("Seeding failed")
            raise


if __name__ == "__main__":
    asyncio.run(main())
