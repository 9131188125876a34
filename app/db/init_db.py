"""
Database initialization.

Creates all tables.
"""

from loguru import logger
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from app.db.session import engine as default_engine


def init_db(engine: Engine = default_engine) -> None:
    """Create the template, occurrence and day-override tables."""

    # Import all models so SQLModel.metadata has them
    import app.db.base  # noqa: F401

    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("Database initialization complete")


if __name__ == "__main__":
    init_db()
