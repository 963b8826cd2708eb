"""
Database table creation script.

Usage:
    python -m meetrelay.create_tables
"""
from meetrelay.database import Base, engine
from meetrelay.utils.logger import logger

# Import all models to register them with Base.metadata
from meetrelay import models  # noqa: F401


def create_all_tables() -> None:
    """
    Create all tables registered with ``Base.metadata``.

    Idempotent: existing tables are left unchanged.
    """
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created successfully.")


def drop_all_tables() -> None:
    """Drop all tables and their data. Development only."""
    Base.metadata.drop_all(bind=engine)
    logger.info("All tables dropped successfully.")


if __name__ == "__main__":
    create_all_tables()
