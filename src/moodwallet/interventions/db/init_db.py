"""Dev automation: create database → run migrations.

Not used at application startup. In production, run `alembic upgrade head`
as a separate step before launching the API.

Usage:
    python -m moodwallet.interventions.db.init_db
"""

import asyncio
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import make_url, text
from sqlalchemy.ext.asyncio import create_async_engine

from moodwallet.interventions.config.settings import settings

logger = logging.getLogger(__name__)

# src/moodwallet/interventions/db/ → project root
_PROJECT_ROOT = Path(__file__).resolve().parents[4]
_ALEMBIC_INI = _PROJECT_ROOT / "alembic.ini"


async def create_database_if_not_exists(db_url: str) -> None:
    """Connect to the `postgres` maintenance DB and create the target DB if absent."""
    url = make_url(db_url)
    db_name = url.database
    admin_url = url.set(database="postgres")

    engine = create_async_engine(admin_url, isolation_level="AUTOCOMMIT")
    try:
        async with engine.connect() as conn:
            exists = await conn.scalar(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            )
            if exists:
                logger.info("Database already exists: %s", db_name)
                return
            await conn.execute(text(f'CREATE DATABASE "{db_name}"'))
            logger.info("Created database: %s", db_name)
    finally:
        await engine.dispose()


def run_migrations() -> None:
    """Run `alembic upgrade head`. env.py drives its own event loop."""
    if not _ALEMBIC_INI.exists():
        raise FileNotFoundError(f"alembic.ini not found at {_ALEMBIC_INI}")

    cfg = Config(str(_ALEMBIC_INI))
    cfg.set_main_option("script_location", str(_PROJECT_ROOT / "alembic"))
    logger.info("Running alembic upgrade head...")
    command.upgrade(cfg, "head")
    logger.info("Migrations complete.")


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")
    asyncio.run(create_database_if_not_exists(settings.DATABASE_URL))
    # outside the loop above: alembic/env.py calls asyncio.run itself
    run_migrations()
    logger.info("Savings ledger database ready.")


if __name__ == "__main__":
    main()
