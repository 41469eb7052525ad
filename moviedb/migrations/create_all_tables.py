"""
Migration script to create all database tables

Run this script to create all database tables:
    python -m moviedb.migrations.create_all_tables
"""

import logging
from typing import List

from sqlalchemy.engine import Engine

from moviedb.database import engine, Base
# Registers every model with Base
import moviedb.models  # noqa: F401

logger = logging.getLogger(__name__)


def create_tables(bind: Engine = engine) -> List[str]:
    """Create all database tables. Returns the table names."""
    logger.info("Creating all database tables...")

    try:
        Base.metadata.create_all(bind=bind)
    except Exception as e:
        logger.error(f"Error creating tables: {e}", exc_info=True)
        raise

    tables = sorted(Base.metadata.tables)
    for name in tables:
        logger.info(f"   - {name}")
    logger.info("All tables created successfully")
    return tables


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    create_tables()
