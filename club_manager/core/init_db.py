import asyncio
import logging

from sqlalchemy import select, func

from club_manager.clubs.models import Fonction, RoleType, UserAccount
from club_manager.core.config import ADMIN_EMAIL, ADMIN_PASSWORD, ENVIRONMENT
from club_manager.core.database import (
    async_session,
    Base,
    db_manager,
    db_operation,
    engine,
)
from club_manager.core.exceptions import ConfigurationError, DatabaseError
from club_manager.core.passwords import hash_password
from club_manager.events.models import Evenement  # noqa: F401
from club_manager.finance.models import TypeBudget
from club_manager.gala.models import Gala  # noqa: F401
from club_manager.meetings.models import TypeReunion

logger = logging.getLogger(__name__)

DEFAULT_TYPES_BUDGET = ("Recettes", "Dépenses")
DEFAULT_TYPES_REUNION = (
    "Réunion statutaire",
    "Réunion de comité",
    "Assemblée générale",
)
DEFAULT_FONCTIONS = (
    "Président",
    "Vice-président",
    "Secrétaire",
    "Trésorier",
    "Protocole",
    "Membre",
)


async def _seed_labels(session, model, column, labels) -> int:
    result = await session.execute(select(column))
    existing = {value.lower() for value in result.scalars().all()}

    created = 0
    for label in labels:
        if label.lower() not in existing:
            session.add(model(**{column.key: label}))
            created += 1
    return created


@db_operation
async def create_initial_data():
    """Create the global lookup rows if they don't exist"""
    async with async_session() as session:
        try:
            created = await _seed_labels(
                session, TypeBudget, TypeBudget.label, DEFAULT_TYPES_BUDGET
            )
            created += await _seed_labels(
                session, TypeReunion, TypeReunion.label, DEFAULT_TYPES_REUNION
            )
            created += await _seed_labels(
                session, Fonction, Fonction.name, DEFAULT_FONCTIONS
            )
            await session.commit()

            if created:
                logger.info(f"Initial lookup data created ({created} rows)")
            else:
                logger.info("Lookup data already present, skipping creation")

        except Exception as e:
            logger.error(f"Failed to create initial data: {e}")
            await session.rollback()
            raise DatabaseError(f"Failed to create initial data: {str(e)}")


@db_operation
async def create_admin_account():
    """Bootstrap the Admin account from ADMIN_EMAIL / ADMIN_PASSWORD"""
    if not ADMIN_EMAIL:
        logger.info("ADMIN_EMAIL not set, skipping admin bootstrap")
        return

    email = ADMIN_EMAIL.strip().lower()
    async with async_session() as session:
        try:
            result = await session.execute(
                select(UserAccount).where(UserAccount.email == email)
            )
            admin = result.scalar_one_or_none()

            if admin is None:
                session.add(
                    UserAccount(
                        email=email,
                        password_hash=hash_password(ADMIN_PASSWORD),
                        first_name="Admin",
                        last_name="",
                        roles=[RoleType.admin.value],
                    )
                )
                logger.info(f"Admin account created: {email}")
            elif RoleType.admin.value not in (admin.roles or []):
                admin.roles = list(admin.roles or []) + [RoleType.admin.value]
                logger.info(f"Admin role granted to existing account: {email}")

            await session.commit()

        except Exception as e:
            logger.error(f"Failed to bootstrap admin account: {e}")
            await session.rollback()
            raise DatabaseError(f"Failed to bootstrap admin account: {str(e)}")


async def init_database():
    """Initialize database with tables and initial data"""
    try:
        logger.info("Starting database initialization...")

        await db_manager.check_connection()
        logger.info("✅ Database connection verified")

        await db_manager.create_tables()
        logger.info("✅ Database tables created/verified")

        await create_initial_data()
        await create_admin_account()
        logger.info("✅ Initial data created/verified")

        logger.info("🎉 Database initialization completed successfully")

    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during database initialization: {e}")
        raise DatabaseError(f"Database initialization failed: {str(e)}")


async def verify_database_setup():
    """Verify that the lookup data is in place"""
    try:
        logger.info("Verifying database setup...")

        async with async_session() as session:
            counts = {}
            for name, column in (
                ("types_budget", TypeBudget.id),
                ("types_reunion", TypeReunion.id),
                ("fonctions", Fonction.id),
            ):
                result = await session.execute(select(func.count(column)))
                counts[name] = result.scalar()

        missing = [name for name, count in counts.items() if not count]
        if missing:
            raise DatabaseError(f"Missing lookup data: {', '.join(missing)}")

        logger.info(f"✅ Database verification passed: {counts}")
        return True

    except Exception as e:
        logger.error(f"Database verification failed: {e}")
        raise DatabaseError(f"Database verification failed: {str(e)}")


async def reset_database():
    """Reset database (for development/testing only)"""
    if ENVIRONMENT not in ["development", "dev", "test"]:
        raise ConfigurationError(
            "ENVIRONMENT",
            "Database reset is only allowed in development or test environments",
        )

    try:
        logger.warning("🚨 RESETTING DATABASE - ALL DATA WILL BE LOST!")

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("✅ All tables dropped")

        await init_database()
        logger.info("✅ Database reset completed")

    except Exception as e:
        logger.error(f"Database reset failed: {e}")
        raise DatabaseError(f"Database reset failed: {str(e)}")


if __name__ == "__main__":
    import sys

    async def main():
        command = sys.argv[1] if len(sys.argv) > 1 else "init"

        if command == "init":
            await init_database()
        elif command == "verify":
            await verify_database_setup()
        elif command == "reset":
            await reset_database()
        else:
            print(f"Unknown command: {command}")
            print("Available commands: init, verify, reset")
            sys.exit(1)

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Database initialization cancelled by user")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        sys.exit(1)
