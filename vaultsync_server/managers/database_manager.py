"""
VaultSync Server - Database Manager

This module manages the metadata database connection and initialization.
The database only tracks per-file version counters and hashes; file content
lives on disk in the vault directory.
"""

import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from vaultsync_server.models.database import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Manages database connection, initialization, and sessions
    """

    def __init__(self, db_path: str = "database/vaultsync.db"):
        """
        Initialize database manager

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

        # Ensure database directory exists
        db_dir = Path(db_path).parent
        if db_dir and str(db_dir) != '.':
            db_dir.mkdir(parents=True, exist_ok=True)

        # Handlers may run on any worker thread; the vault lock serializes writes
        self.engine = create_engine(
            f"sqlite:///{db_path}",
            echo=False,
            connect_args={"check_same_thread": False}
        )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def InitializeDatabase(self) -> None:
        """
        Create all tables if they don't exist
        """
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Metadata database ready: {self.db_path}")

    def GetSession(self) -> Session:
        """
        Get a new database session

        Returns:
            Session: SQLAlchemy session
        """
        return self.SessionLocal()

    def Dispose(self) -> None:
        """
        Release all pooled connections
        """
        self.engine.dispose()
