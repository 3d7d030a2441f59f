"""
VaultSync Client - Local Database

Opens the SQLite database that backs the local cache and the pending
operation queue.

Author: VaultSync Project
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from vaultsync_client.models.database import Base

# Configure logging
logger = logging.getLogger(__name__)


class LocalDatabase:
    """
    Manages the local cache database connection.
    """

    def __init__(self, db_path: str):
        """
        Initialize the local database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

        db_dir = Path(db_path).parent
        if db_dir and str(db_dir) != '.':
            db_dir.mkdir(parents=True, exist_ok=True)

        # The periodic drain thread shares this engine with the caller's thread
        self.engine = create_engine(
            f"sqlite:///{db_path}",
            echo=False,
            connect_args={"check_same_thread": False}
        )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def initialize(self):
        """
        Create tables if needed and verify the file is a usable database.

        Raises:
            SQLAlchemyError: If the database is corrupt or cannot be opened
        """
        Base.metadata.create_all(bind=self.engine)
        with self.engine.connect() as connection:
            result = connection.execute(text("PRAGMA quick_check")).scalar()
        if result != "ok":
            raise SQLAlchemyError(f"Integrity check failed: {result}")
        logger.debug(f"Local database ready: {self.db_path}")

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def dispose(self):
        """Release all pooled connections."""
        self.engine.dispose()


def open_local_database(db_path: str) -> Optional[LocalDatabase]:
    """
    Open the local cache, or report that it is unavailable.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Ready LocalDatabase, or None when the cache cannot be opened. Callers
        fall back to online-only mode in that case.
    """
    database = None
    try:
        database = LocalDatabase(str(db_path))
        database.initialize()
        return database
    except (SQLAlchemyError, OSError) as e:
        if database is not None:
            database.dispose()
        logger.warning(f"Local cache unavailable at {db_path}, continuing in online-only mode: {e}")
        return None
