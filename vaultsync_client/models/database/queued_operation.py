"""
VaultSync Client - Queued Operation Database Model

Author: VaultSync Project
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Index

from .base import Base


class QueuedOperation(Base):
    """
    Sync queue table - writes waiting for connectivity, replayed in id order
    """
    __tablename__ = "sync_queue"

    id = Column(Integer, primary_key=True, autoincrement=True)
    operation = Column(String, nullable=False)  # 'save' or 'delete'
    path = Column(String, nullable=False)
    content = Column(Text, nullable=True)  # NULL for deletes
    enqueued_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index('idx_sync_queue_enqueued', 'enqueued_at'),
        Index('idx_sync_queue_path', 'path'),
        {"sqlite_autoincrement": True}
    )
