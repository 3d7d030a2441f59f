"""
VaultSync Client - Sync Queue

Durable queue of writes that could not reach the server. Items are replayed
in the order they were queued.

Author: VaultSync Project
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from vaultsync_client.managers.local_database import LocalDatabase
from vaultsync_client.models import QueueItem, QueueOperation
from vaultsync_client.models.database import QueuedOperation

# Configure logging
logger = logging.getLogger(__name__)


class SyncQueue:
    """
    Pending-operation queue backed by the local database.
    """

    def __init__(self, database: LocalDatabase):
        self.database = database

    def enqueue(self, operation: QueueOperation, path: str, content: Optional[str] = None) -> int:
        """
        Append an operation to the queue.

        Args:
            operation: SAVE or DELETE
            path: Vault-relative path
            content: Content to write (SAVE only)

        Returns:
            The new item's id
        """
        if operation == QueueOperation.SAVE and content is None:
            raise ValueError("SAVE operations need content")

        session = self.database.get_session()
        try:
            row = QueuedOperation(
                operation=operation.value,
                path=path,
                content=content if operation == QueueOperation.SAVE else None,
                enqueued_at=datetime.now(timezone.utc)
            )
            session.add(row)
            session.commit()
            logger.info(f"Queued {operation.value} of {path} (item {row.id})")
            return row.id
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dequeue(self, item_id: int) -> bool:
        """
        Remove an item after it has been handled.

        Returns:
            True if the item existed
        """
        session = self.database.get_session()
        try:
            deleted = session.query(QueuedOperation).filter(QueuedOperation.id == item_id).delete()
            session.commit()
            return deleted > 0
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def contains(self, item_id: int) -> bool:
        """Check whether an item is still queued."""
        session = self.database.get_session()
        try:
            return session.query(QueuedOperation.id).filter(QueuedOperation.id == item_id).first() is not None
        finally:
            session.close()

    def list_items(self) -> List[QueueItem]:
        """Get all queued items in enqueue order."""
        session = self.database.get_session()
        try:
            rows = session.query(QueuedOperation).order_by(QueuedOperation.id).all()
            return [
                QueueItem(
                    id=row.id,
                    operation=QueueOperation(row.operation),
                    path=row.path,
                    content=row.content,
                    enqueued_at=row.enqueued_at
                )
                for row in rows
            ]
        finally:
            session.close()

    def remove_for_path(self, path: str) -> int:
        """
        Drop every queued item for a path.

        Returns:
            Number of items removed
        """
        session = self.database.get_session()
        try:
            removed = session.query(QueuedOperation).filter(QueuedOperation.path == path).delete()
            session.commit()
            if removed:
                logger.info(f"Dropped {removed} queued operation(s) for {path}")
            return removed
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def count(self) -> int:
        """Number of queued items."""
        session = self.database.get_session()
        try:
            return session.query(QueuedOperation).count()
        finally:
            session.close()
