"""
Create the database tables.

Usage:
    python -m dashboard.scripts.init_db

Reads DATABASE_URL from environment / .env. Existing tables are left as they are.
"""

import logging

import dashboard.models  # noqa: F401  registers every table on Base.metadata
from dashboard.core.logging_config import setup_logging
from dashboard.db.base import Base
from dashboard.db.session import engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    setup_logging()
    init_db()
