"""
VaultSync Server - Vault Storage

This module owns the vault directory and its metadata:
- Path resolution confined to the vault root
- SHA-256 hashing of file content
- Per-path version counters used for optimistic concurrency
- Atomic compare-and-write of file content

Every operation that reads a version and then acts on it runs under a single
store-wide lock, so two writers holding the same expected version can never
both succeed.
"""

import hashlib
import logging
import os
import tempfile
import threading
import time
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from vaultsync_server.managers.database_manager import DatabaseManager
from vaultsync_server.models.database import VaultFile
from vaultsync_server.models.infrastructure import StoredFile

logger = logging.getLogger(__name__)

# Files modified this recently are always rehashed; mtime granularity is too
# coarse to tell two quick same-size writes apart
RECENT_CHANGE_WINDOW_NS = 2_000_000_000


# ==================== Errors ====================

class PathTraversalError(ValueError):
    """Raised when a requested path resolves outside the vault root"""

    def __init__(self, path: str):
        super().__init__(f"Path is outside the vault: {path}")
        self.path = path


class VaultConflictError(Exception):
    """
    Raised when a write carries a stale version

    Attributes:
        path: Vault-relative path
        current_content: Content currently stored on the server
        current_version: Version the server currently holds for the path
    """

    def __init__(self, path: str, current_content: str, current_version: int):
        super().__init__(f"Version conflict on {path}: server is at version {current_version}")
        self.path = path
        self.current_content = current_content
        self.current_version = current_version


class NotTextError(ValueError):
    """Raised when a file is read as text but is not valid UTF-8"""

    def __init__(self, path: str):
        super().__init__(f"Not a UTF-8 text file: {path}")
        self.path = path


# ==================== Helpers ====================

def NormalizePath(path: str) -> str:
    """
    Normalize a client supplied path to a vault-relative posix path

    Backslashes become forward slashes and leading slashes are stripped.
    Traversal segments are left alone; ResolvePath rejects them.

    Args:
        path: Path as received from a client

    Returns:
        str: Normalized relative path ("" for the vault root)
    """
    normalized = (path or "").replace("\\", "/").lstrip("/")
    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    return "/".join(parts)


def HasHiddenSegment(relative_path: str) -> bool:
    """Check whether any segment of a relative path starts with a dot"""
    return any(part.startswith(".") for part in PurePosixPath(relative_path).parts)


def CalculateContentHash(data: bytes) -> str:
    """
    Calculate SHA-256 hash of file content

    Args:
        data: Raw file bytes

    Returns:
        str: Hexadecimal SHA-256 hash
    """
    return hashlib.sha256(data).hexdigest()


def DecodeText(data: bytes) -> Optional[str]:
    """Decode UTF-8 file content, or return None for binary data"""
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        return None


# ==================== Vault Store ====================

class VaultStore:
    """
    Authoritative store of vault files with versioned writes
    """

    def __init__(self, vault_root: str, db_manager: DatabaseManager):
        """
        Initialize the vault store

        Args:
            vault_root: Directory holding the markdown files
            db_manager: Metadata database manager (tables must exist)
        """
        self.vault_root = Path(vault_root).resolve()
        self.vault_root.mkdir(parents=True, exist_ok=True)
        self.db_manager = db_manager
        self._lock = threading.Lock()
        logger.info(f"Vault root directory ready: {self.vault_root}")

    # ---------- path handling ----------

    def ResolvePath(self, path: str, allow_root: bool = False) -> Tuple[str, Path]:
        """
        Resolve a client path to its normalized relative form and absolute location

        Args:
            path: Client supplied path
            allow_root: Accept the empty path (the vault root itself)

        Returns:
            Tuple[str, Path]: (relative posix path, absolute path)

        Raises:
            PathTraversalError: If the path escapes the vault root
        """
        relative = NormalizePath(path)
        if not relative and not allow_root:
            raise PathTraversalError(path)

        absolute = (self.vault_root / relative).resolve()
        if absolute != self.vault_root and self.vault_root not in absolute.parents:
            logger.warning(f"Rejected path outside vault: {path}")
            raise PathTraversalError(path)

        relative = absolute.relative_to(self.vault_root).as_posix() if absolute != self.vault_root else ""
        return relative, absolute

    # ---------- metadata ----------

    def _SyncWithDisk(self, session: Session, relative: str, absolute: Path, read_data: bool = True) -> Tuple[Optional[VaultFile], Optional[bytes]]:
        """
        Bring the metadata row for a path in line with what is on disk

        A file that appeared or changed outside the server gets a new version
        so clients see it as a newer server state. A file removed outside the
        server turns its row into a tombstone. After the call the file exists
        exactly when the row is active (see _IsActive).

        Args:
            read_data: Always return the file bytes. When False, a file whose
                       size and mtime match the row is not read or rehashed.

        Returns:
            Tuple: (metadata row or None, file bytes or None if not read)
        """
        row = session.query(VaultFile).filter(VaultFile.path == relative).first()

        if not absolute.is_file():
            if _IsActive(row):
                logger.info(f"File removed outside the server: {relative}")
                _MarkDeleted(row)
            return row, None

        disk_stat = absolute.stat()
        if (not read_data and _IsActive(row) and row.size == disk_stat.st_size
                and row.disk_mtime_ns == disk_stat.st_mtime_ns
                and time.time_ns() - disk_stat.st_mtime_ns > RECENT_CHANGE_WINDOW_NS):
            return row, None

        data = absolute.read_bytes()
        file_hash = CalculateContentHash(data)

        if row is None:
            row = VaultFile(
                path=relative,
                version=1,
                file_hash=file_hash,
                size=len(data),
                is_deleted=False,
                modified_utc=datetime.fromtimestamp(disk_stat.st_mtime, tz=timezone.utc)
            )
            session.add(row)
            logger.info(f"Registered untracked file {relative} at version 1")
        elif row.is_deleted or row.file_hash != file_hash:
            row.version += 1
            row.file_hash = file_hash
            row.size = len(data)
            row.is_deleted = False
            row.modified_utc = datetime.now(timezone.utc)
            logger.info(f"Detected external change to {relative}, now version {row.version}")

        row.disk_mtime_ns = disk_stat.st_mtime_ns
        row.is_text = DecodeText(data) is not None
        return row, data

    def _StoreContent(self, session: Session, row: Optional[VaultFile], relative: str, absolute: Path, content: str) -> VaultFile:
        """
        Write content to disk and bump the version counter

        Returns:
            VaultFile: The updated (or newly created) metadata row
        """
        data = content.encode('utf-8')
        _WriteAtomically(absolute, data)

        now = datetime.now(timezone.utc)
        if row is None:
            row = VaultFile(path=relative, version=0)
            session.add(row)

        row.version = (row.version or 0) + 1
        row.file_hash = CalculateContentHash(data)
        row.size = len(data)
        row.disk_mtime_ns = absolute.stat().st_mtime_ns
        row.is_text = True
        row.is_deleted = False
        row.modified_utc = now
        return row

    def _ReadText(self, relative: str, absolute: Path, data: Optional[bytes] = None) -> str:
        """
        Decode a file's content

        Raises:
            NotTextError: If the file is not valid UTF-8
        """
        if data is None:
            data = absolute.read_bytes()
        content = DecodeText(data)
        if content is None:
            raise NotTextError(relative)
        return content

    # ---------- public operations ----------

    def Read(self, path: str) -> Optional[StoredFile]:
        """
        Read a file and its current version

        Args:
            path: Vault-relative path

        Returns:
            StoredFile or None if the file does not exist

        Raises:
            NotTextError: If the file is binary
        """
        relative, absolute = self.ResolvePath(path)

        with self._lock:
            session = self.db_manager.GetSession()
            try:
                row, data = self._SyncWithDisk(session, relative, absolute)
                session.commit()
                if not _IsActive(row):
                    return None
                return StoredFile(relative, self._ReadText(relative, absolute, data), row.version, row.modified_utc)
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def Stat(self, path: str) -> Optional[Dict]:
        """
        Get metadata for a file without returning its content

        Returns:
            dict with path, version, size, file_hash, is_text, modified_utc or None
        """
        relative, absolute = self.ResolvePath(path)

        with self._lock:
            session = self.db_manager.GetSession()
            try:
                row, _ = self._SyncWithDisk(session, relative, absolute, read_data=False)
                session.commit()
                if not _IsActive(row):
                    return None
                return {
                    'path': relative,
                    'version': row.version,
                    'size': row.size,
                    'file_hash': row.file_hash,
                    'is_text': row.is_text,
                    'modified_utc': row.modified_utc
                }
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def Write(self, path: str, content: str, expected_version: Optional[int] = None) -> StoredFile:
        """
        Write a file, optionally guarded by the version the writer last saw

        A write without expected_version is a force write. A write whose
        expected_version differs from the current version of an existing file
        is rejected without touching the file. Writing to a path that does not
        exist creates it regardless of expected_version.

        Args:
            path: Vault-relative path
            content: New file content
            expected_version: Version the writer based its edit on

        Returns:
            StoredFile: The stored content with its new version

        Raises:
            VaultConflictError: If expected_version is stale
            PathTraversalError: If the path escapes the vault root
        """
        relative, absolute = self.ResolvePath(path)

        with self._lock:
            session = self.db_manager.GetSession()
            try:
                row, _ = self._SyncWithDisk(session, relative, absolute, read_data=False)

                if _IsActive(row) and expected_version is not None and row.version != expected_version:
                    session.commit()
                    logger.warning(
                        f"Rejected write to {relative}: expected version {expected_version}, "
                        f"server has {row.version}"
                    )
                    current = absolute.read_bytes().decode('utf-8', errors='replace')
                    raise VaultConflictError(relative, current, row.version)

                row = self._StoreContent(session, row, relative, absolute, content)
                session.commit()
                logger.info(f"Stored {relative} at version {row.version} ({row.size} bytes)")
                return StoredFile(relative, content, row.version, row.modified_utc)
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def Create(self, path: str, content: str = "") -> StoredFile:
        """
        Create a new file

        Raises:
            FileExistsError: If an active file already exists at the path
            PathTraversalError: If the path escapes the vault root
        """
        relative, absolute = self.ResolvePath(path)

        with self._lock:
            session = self.db_manager.GetSession()
            try:
                row, _ = self._SyncWithDisk(session, relative, absolute, read_data=False)
                if _IsActive(row):
                    session.commit()
                    raise FileExistsError(f"File already exists: {relative}")

                row = self._StoreContent(session, row, relative, absolute, content)
                session.commit()
                logger.info(f"Created {relative} at version {row.version}")
                return StoredFile(relative, content, row.version, row.modified_utc)
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def Rename(self, source: str, destination: str, expected_version: Optional[int] = None) -> Dict:
        """
        Move a file to a new path

        The source row becomes a tombstone. The destination continues its own
        version counter, so a path that was deleted earlier still gets a
        version higher than any it had before.

        Args:
            source: Current vault-relative path
            destination: New vault-relative path
            expected_version: Version of the source the caller last saw

        Returns:
            dict with path and version of the destination

        Raises:
            FileNotFoundError: If the source does not exist
            FileExistsError: If the destination already exists
            VaultConflictError: If expected_version is stale
            PathTraversalError: If either path escapes the vault root
        """
        source_relative, source_absolute = self.ResolvePath(source)
        target_relative, target_absolute = self.ResolvePath(destination)

        with self._lock:
            session = self.db_manager.GetSession()
            try:
                source_row, _ = self._SyncWithDisk(session, source_relative, source_absolute, read_data=False)
                if not _IsActive(source_row):
                    session.commit()
                    raise FileNotFoundError(f"File not found: {source_relative}")

                if expected_version is not None and source_row.version != expected_version:
                    session.commit()
                    current = source_absolute.read_bytes().decode('utf-8', errors='replace')
                    raise VaultConflictError(source_relative, current, source_row.version)

                target_row, _ = self._SyncWithDisk(session, target_relative, target_absolute, read_data=False)
                if _IsActive(target_row):
                    session.commit()
                    raise FileExistsError(f"File already exists: {target_relative}")

                target_absolute.parent.mkdir(parents=True, exist_ok=True)
                os.replace(source_absolute, target_absolute)

                if target_row is None:
                    target_row = VaultFile(path=target_relative, version=0)
                    session.add(target_row)
                target_row.version = (target_row.version or 0) + 1
                target_row.file_hash = source_row.file_hash
                target_row.size = source_row.size
                target_row.is_text = source_row.is_text
                target_row.disk_mtime_ns = target_absolute.stat().st_mtime_ns
                target_row.is_deleted = False
                target_row.modified_utc = datetime.now(timezone.utc)
                _MarkDeleted(source_row)

                session.commit()
                logger.info(f"Renamed {source_relative} -> {target_relative} (version {target_row.version})")
                return {'path': target_relative, 'version': target_row.version}
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def Delete(self, path: str) -> bool:
        """
        Delete a file, keeping its metadata row as a tombstone

        Returns:
            bool: True if a file was deleted, False if it did not exist
        """
        relative, absolute = self.ResolvePath(path)

        with self._lock:
            session = self.db_manager.GetSession()
            try:
                row, _ = self._SyncWithDisk(session, relative, absolute, read_data=False)
                if not _IsActive(row):
                    session.commit()
                    return False

                absolute.unlink()
                _MarkDeleted(row)
                session.commit()
                logger.info(f"Deleted {relative} (last version {row.version})")
                return True
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def ListFiles(self, folder: str = "") -> List[Dict]:
        """
        List text files under a folder recursively

        Hidden files, anything inside hidden folders, and files that are not
        valid UTF-8 (images, PDFs and other attachments) are skipped. Files
        are only rehashed when their size or mtime changed since the last look.

        Args:
            folder: Vault-relative folder, empty for the whole vault

        Returns:
            List of {path, name, modified} dicts sorted by path
        """
        _, base = self.ResolvePath(folder, allow_root=True)
        if not base.is_dir():
            return []

        with self._lock:
            session = self.db_manager.GetSession()
            try:
                entries = []
                for absolute in sorted(base.rglob("*")):
                    if not absolute.is_file():
                        continue
                    relative = absolute.relative_to(self.vault_root).as_posix()
                    if HasHiddenSegment(relative):
                        continue
                    row, _ = self._SyncWithDisk(session, relative, absolute, read_data=False)
                    if not _IsActive(row):
                        continue
                    if not row.is_text:
                        logger.debug(f"Skipping non-text file {relative}")
                        continue
                    entries.append({
                        'path': relative,
                        'name': absolute.name,
                        'modified': row.version
                    })
                session.commit()
                entries.sort(key=lambda entry: entry['path'])
                return entries
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()


def _IsActive(row: Optional[VaultFile]) -> bool:
    return row is not None and not row.is_deleted


def _MarkDeleted(row: VaultFile) -> None:
    row.is_deleted = True
    row.file_hash = None
    row.size = None
    row.disk_mtime_ns = None
    row.modified_utc = datetime.now(timezone.utc)


# ==================== Disk I/O ====================

TEMP_SUFFIX = ".tmp"


def _WriteAtomically(target: Path, data: bytes) -> None:
    """
    Write bytes to a temp file next to the target, then rename over it

    Args:
        target: Final file location
        data: Content to write
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=TEMP_SUFFIX)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_name, target)
    except OSError:
        Path(temp_name).unlink(missing_ok=True)
        raise
