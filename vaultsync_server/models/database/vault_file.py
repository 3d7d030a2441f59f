"""
VaultSync Server - Vault File Database Model

Tracks the version counter and content hash of every path in the vault.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Index

from vaultsync_server.models.database.base import Base


class VaultFile(Base):
    """
    Vault files table - one row per path, kept as a tombstone after delete

    The version column is the concurrency token handed to clients as
    "modified". It only ever increases for a given path, including across
    delete and re-create.
    """
    __tablename__ = "vault_files"

    file_id = Column(Integer, primary_key=True, autoincrement=True)
    path = Column(String, nullable=False, unique=True)  # posix path relative to the vault root
    version = Column(Integer, nullable=False, default=0)
    file_hash = Column(String, nullable=True)  # SHA-256 hash, NULL if deleted
    size = Column(Integer, nullable=True)  # bytes, NULL if deleted
    disk_mtime_ns = Column(Integer, nullable=True)  # st_mtime_ns when the hash was taken
    is_text = Column(Boolean, nullable=False, default=True)  # content decodes as UTF-8
    is_deleted = Column(Boolean, nullable=False, default=False)
    modified_utc = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index('idx_vault_files_deleted', 'is_deleted'),
        {"sqlite_autoincrement": True}
    )

    def __repr__(self):
        return f"<VaultFile(path='{self.path}', version={self.version}, deleted={self.is_deleted})>"
