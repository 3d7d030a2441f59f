"""
VaultSync Client - Cache Store

Persistent local copy of vault files. Writes here never depend on
connectivity; the sync coordinator decides when they reach the server.

Author: VaultSync Project
"""

import logging
from datetime import timezone
from typing import List, Optional

from vaultsync_client.managers.local_database import LocalDatabase
from vaultsync_client.models import FileRecord, SyncState
from vaultsync_client.models.database import CachedFile

# Configure logging
logger = logging.getLogger(__name__)


class CacheStore:
    """
    Keyed store of FileRecords backed by the local database.

    Every method runs in its own session and commits before returning.
    """

    def __init__(self, database: LocalDatabase):
        self.database = database

    @staticmethod
    def _to_record(row: CachedFile) -> FileRecord:
        # SQLite drops tzinfo; stored times are UTC
        modified_at = row.modified_at
        if modified_at.tzinfo is None:
            modified_at = modified_at.replace(tzinfo=timezone.utc)
        return FileRecord(
            path=row.path,
            content=row.content,
            modified_at=modified_at,
            server_modified_at=row.server_modified_at,
            state=SyncState(row.sync_state),
            conflict_server_content=row.conflict_server_content,
            conflict_server_modified=row.conflict_server_modified
        )

    def get(self, path: str) -> Optional[FileRecord]:
        """
        Get the cached record for a path.

        Returns:
            FileRecord or None if the path is not cached
        """
        session = self.database.get_session()
        try:
            row = session.get(CachedFile, path)
            return self._to_record(row) if row is not None else None
        finally:
            session.close()

    def get_all(self) -> List[FileRecord]:
        """Get every cached record, ordered by path."""
        return self._query()

    def get_pending(self) -> List[FileRecord]:
        """Get records with edits the server has not accepted (conflicted included)."""
        return self._query(SyncState.PENDING, SyncState.CONFLICTED)

    def get_conflicted(self) -> List[FileRecord]:
        """Get records waiting for a conflict resolution."""
        return self._query(SyncState.CONFLICTED)

    def _query(self, *states: SyncState) -> List[FileRecord]:
        session = self.database.get_session()
        try:
            query = session.query(CachedFile)
            if states:
                query = query.filter(CachedFile.sync_state.in_([state.value for state in states]))
            return [self._to_record(row) for row in query.order_by(CachedFile.path).all()]
        finally:
            session.close()

    def put(self, record: FileRecord) -> FileRecord:
        """
        Insert or replace the record for record.path.

        Returns:
            The stored record
        """
        session = self.database.get_session()
        try:
            session.merge(CachedFile(
                path=record.path,
                content=record.content,
                modified_at=record.modified_at,
                server_modified_at=record.server_modified_at,
                sync_state=record.state.value,
                conflict_server_content=record.conflict_server_content,
                conflict_server_modified=record.conflict_server_modified
            ))
            session.commit()
            logger.debug(f"Cached {record.path} ({record.state.value}, baseline {record.server_modified_at})")
            return record
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete(self, path: str) -> bool:
        """
        Remove a path from the cache.

        Returns:
            True if a record was removed
        """
        session = self.database.get_session()
        try:
            deleted = session.query(CachedFile).filter(CachedFile.path == path).delete()
            session.commit()
            return deleted > 0
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
