"""Create the moderation tables for a fresh database."""

from loguru import logger
from sqlalchemy import inspect

import repositories.db_models  # noqa: F401  registers tables on Base.metadata
from models.config import settings
from repositories.database import Base, engine


def init_db() -> list[str]:
    """
    Create any missing tables declared on Base.metadata.

    Existing tables are left untouched; use `alembic upgrade head` for
    schema changes on deployed databases.

    Returns:
        Names of the tables present after initialization
    """
    existing = set(inspect(engine).get_table_names())
    Base.metadata.create_all(bind=engine)
    tables = sorted(inspect(engine).get_table_names())

    created = [name for name in tables if name not in existing]
    if created:
        logger.info(f"Created tables: {', '.join(created)}")
    else:
        logger.info("All tables already exist")
    return tables


if __name__ == "__main__":
    init_db()
    logger.info(f"Database initialization complete ({settings.ENVIRONMENT})")
