"""
VaultSync Client - Cached File Database Model

Author: VaultSync Project
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Index

from .base import Base


class CachedFile(Base):
    """
    Files table - one row per vault path known to the client
    """
    __tablename__ = "files"

    path = Column(String, primary_key=True)
    content = Column(Text, nullable=False, default="")
    modified_at = Column(DateTime, nullable=False)
    server_modified_at = Column(Integer, nullable=True)  # NULL until the server has accepted a version
    sync_state = Column(String, nullable=False, default="pending")
    conflict_server_content = Column(Text, nullable=True)
    conflict_server_modified = Column(Integer, nullable=True)

    __table_args__ = (
        Index('idx_files_sync_state', 'sync_state'),
    )
