"""
VaultSync Client - Sync Coordinator Module

Keeps the local cache and the server eventually consistent:
- Reconcile: compare every server file with the cache at session start
- Save: write locally, then push optimistically with the cached baseline
- Drain: replay writes that were queued while offline
- Resolve: apply the user's choice for a conflicted file

The coordinator is the only writer of sync state. Network calls happen
outside the state lock; anything learned from a response is checked against
the cache again before it is applied, because the user may have kept typing.

Author: VaultSync Project
"""

import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from vaultsync_client.api import VaultSyncAPI
from vaultsync_client.exceptions import (
    TRANSIENT_ERRORS,
    VaultSyncAPIError,
    VaultSyncConflictError,
    VaultSyncFileExistsError,
    VaultSyncNotFoundError,
    VaultSyncRequestError
)
from vaultsync_client.managers import CacheStore, SyncQueue
from vaultsync_client.models import (
    ConflictView, DrainResult, FileRecord, QueueItem, QueueOperation,
    ReconcileResult, Resolution, SaveOutcome
)
from vaultsync_client.operations.conflict_presenter import ConflictPresenter
from vaultsync_client.policy_service import PolicyService

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_DRAIN_INTERVAL_SECONDS = 30.0


class SyncCoordinator:
    """
    Offline-first synchronization of one client with the server.

    Runs in online-only mode when no cache or queue is available: saves go
    straight to the server, baselines live in memory, and reconcile and
    drain do nothing.
    """

    def __init__(
        self,
        api: VaultSyncAPI,
        cache_store: Optional[CacheStore] = None,
        sync_queue: Optional[SyncQueue] = None,
        policy_service: Optional[PolicyService] = None,
        presenter: Optional[ConflictPresenter] = None,
        drain_interval: float = DEFAULT_DRAIN_INTERVAL_SECONDS
    ):
        """
        Initialize the coordinator.

        Args:
            api: VaultSyncAPI instance for server communication
            cache_store: Local cache, None for online-only mode
            sync_queue: Pending-operation queue, None for online-only mode
            policy_service: Restriction policy lookup
            presenter: Shows conflicts to the user; conflicts are only recorded without one
            drain_interval: Seconds between background drains
        """
        self.api = api
        self.cache = cache_store
        self.queue = sync_queue
        self.policy = policy_service or PolicyService()
        self.presenter = presenter
        self.drain_interval = drain_interval
        self.online = True

        self._state_lock = threading.RLock()
        self._drain_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._drain_thread: Optional[threading.Thread] = None

        # Online-only mode bookkeeping
        self._baselines: Dict[str, int] = {}
        self._unresolved: Dict[str, ConflictView] = {}

        if self.online_only:
            logger.warning("No local cache available: running in online-only mode")

    @property
    def online_only(self) -> bool:
        return self.cache is None or self.queue is None

    # ==================== Connectivity ====================

    def set_online(self, online: bool):
        """Record a connectivity change reported by the host application."""
        if online != self.online:
            logger.info(f"Connectivity changed: {'online' if online else 'offline'}")
        self.online = online

    def on_connectivity_restored(self) -> Tuple[ReconcileResult, DrainResult]:
        """
        Go back online and catch up with the server.

        Reconciliation runs before the drain so a file edited on both sides
        while offline is flagged as a conflict before any queued force write
        is replayed.
        """
        self.set_online(True)
        return self.sync_now()

    def sync_now(self) -> Tuple[ReconcileResult, DrainResult]:
        """Reconcile with the server, then drain the queue."""
        reconcile_result = self.reconcile()
        drain_result = self.drain_queue()
        return reconcile_result, drain_result

    # ==================== Reconcile ====================

    def reconcile(self, progress_callback: Optional[Callable] = None) -> ReconcileResult:
        """
        Compare every server file with the cache.

        - Unknown locally: fetch and cache as synced
        - Pending locally and newer on the server: record a conflict, keep local content
        - Synced locally and newer on the server: pull
        - Otherwise nothing

        Never pushes. Safe to run any number of times.

        Args:
            progress_callback: Optional callback for progress updates
                             Called with (message: str, current: int, total: int)

        Returns:
            ReconcileResult with counts and per-file errors
        """
        if self.online_only:
            logger.debug("Reconcile skipped in online-only mode")
            return ReconcileResult()

        logger.info("Starting reconciliation")
        try:
            server_files = self.api.list_files()
        except VaultSyncAPIError as e:
            logger.warning(f"Reconciliation aborted, cannot list server files: {e}")
            return ReconcileResult(success=False, errors=[str(e)])

        result = ReconcileResult()
        queued_deletes = self._queued_deletes()
        total = len(server_files)
        for index, entry in enumerate(server_files, start=1):
            path = entry["path"]
            if progress_callback:
                progress_callback(f"Checking {path}", index, total)
            if path in queued_deletes:
                result.record("unchanged")
                continue
            try:
                action = self._reconcile_file(path, entry["modified"])
            except VaultSyncAPIError as e:
                logger.error(f"Failed to reconcile {path}: {e}")
                result.errors.append(f"{path}: {e}")
                continue
            result.record(action)

        result.success = not result.errors
        logger.info(f"Reconciliation finished: {result.summary()}")
        return result

    def _queued_deletes(self) -> set:
        return {item.path for item in self.queue.list_items() if item.operation == QueueOperation.DELETE}

    def _reconcile_file(self, path: str, server_modified: int, fetched: Optional[Dict] = None) -> str:
        """
        Apply the reconciliation rules to one file.

        Args:
            path: Vault-relative path
            server_modified: Server version from the listing
            fetched: Server copy if it was already downloaded

        Returns:
            "created", "pulled", "conflicts" or "unchanged"
        """
        with self._state_lock:
            local = self.cache.get(path)

        if local is not None and server_modified <= (local.server_modified_at or 0):
            return "unchanged"

        if fetched is None:
            fetched = self.api.read_file(path)
        self.policy.remember(path, fetched.get("policy"))
        server_content = fetched["content"]
        server_version = fetched["modified"]

        with self._state_lock:
            current = self.cache.get(path)

            if current is None:
                if local is not None:
                    # Deleted locally while the server copy was downloading
                    return "unchanged"
                self.cache.put(FileRecord.from_server(path, server_content, server_version))
                logger.info(f"Cached new server file {path} (version {server_version})")
                return "created"

            if server_version <= (current.server_modified_at or 0):
                return "unchanged"

            if current.is_pending:
                if current.content == server_content:
                    # Both sides made the same edit
                    self.cache.put(current.mark_synced(server_version))
                    return "pulled"
                self.cache.put(current.mark_conflicted(server_content, server_version))
                logger.warning(
                    f"Conflict on {path}: local edits pending on version {current.server_modified_at}, "
                    f"server is at {server_version}"
                )
                return "conflicts"

            self.cache.put(current.mark_synced(server_version, content=server_content))
            logger.info(f"Pulled {path} (version {server_version})")
            return "pulled"

    # ==================== Save / Create / Delete / Load ====================

    def save(self, path: str, content: str) -> SaveOutcome:
        """
        Save an edit: cache it, then push it with the cached baseline.

        Args:
            path: Vault-relative path
            content: Full new content

        Returns:
            SaveOutcome

        Raises:
            PolicyViolationError: If the path is read-only or the content too long.
                                  Nothing is written in that case.
        """
        self.policy.check("update", path, content)

        if self.online_only:
            return self._save_online_only(path, content)

        with self._state_lock:
            existing = self.cache.get(path)
            if existing is None:
                record = FileRecord.new_local_edit(path, content)
            else:
                record = existing.mark_pending(content)
            self.cache.put(record)

        if record.has_conflict:
            # The server copy is already known to differ; pushing would only conflict again
            logger.info(f"{path} has an unresolved conflict, saved locally")
            self._present_conflict(record)
            return SaveOutcome.CONFLICT

        if not self.online:
            self.queue.enqueue(QueueOperation.SAVE, path, content)
            logger.info(f"Offline: saved {path} locally and queued it")
            return SaveOutcome.SAVED_OFFLINE

        return self._push(record)

    def _push(self, record: FileRecord) -> SaveOutcome:
        """
        Push a pending record using its baseline.

        A record that never reached the server is sent with baseline 0 so an
        unrelated server file at the same path is reported as a conflict
        instead of being overwritten.
        """
        baseline = record.server_modified_at if record.server_modified_at is not None else 0
        try:
            version = self.api.write_file(record.path, record.content, last_modified=baseline)
        except VaultSyncConflictError as e:
            conflicted = self._record_conflict(record.path, e.server_content, e.server_modified)
            if conflicted is not None:
                self._present_conflict(conflicted)
            return SaveOutcome.CONFLICT
        except TRANSIENT_ERRORS as e:
            logger.warning(f"Push of {record.path} failed ({e}), queued for later")
            self.queue.enqueue(QueueOperation.SAVE, record.path, record.content)
            return SaveOutcome.SAVED_OFFLINE
        except VaultSyncRequestError as e:
            logger.error(f"Server rejected {record.path}: {e}")
            return SaveOutcome.FAILED

        self._apply_accepted_write(record.path, record.content, version)
        return SaveOutcome.SAVED

    def _apply_accepted_write(self, path: str, pushed_content: str, version: int):
        """
        Record that the server stored pushed_content at version.

        When the cache holds exactly that content the record becomes synced
        and older queued writes for the path are dropped; replaying them would
        overwrite the server with stale content. When the cache holds
        something else (edited during the push, or an older queued write was
        replayed) the record stays pending on the new baseline and its
        current content is queued.
        """
        with self._state_lock:
            current = self.cache.get(path)
            if current is None:
                logger.debug(f"{path} was removed locally while its push was in flight")
                return
            if current.has_conflict:
                self.cache.put(current.advance_baseline(version))
                logger.info(f"{path} is conflicted; baseline advanced to {version}")
                return
            if current.content == pushed_content:
                self.cache.put(current.mark_synced(version))
                self.queue.remove_for_path(path)
                logger.info(f"Synced {path} at version {version}")
                return

            self.cache.put(current.rebase_pending(version))
            if not self._latest_queued_save_matches(path, current.content):
                self.queue.enqueue(QueueOperation.SAVE, path, current.content)
            logger.info(f"{path} differs from what the server stored at version {version}, still pending")

    def _latest_queued_save_matches(self, path: str, content: str) -> bool:
        for_path = [item for item in self.queue.list_items() if item.path == path]
        return bool(for_path) and for_path[-1].operation == QueueOperation.SAVE and for_path[-1].content == content

    def _record_conflict(self, path: str, server_content: Optional[str], server_modified: Optional[int]) -> Optional[FileRecord]:
        with self._state_lock:
            current = self.cache.get(path)
            if current is None:
                return None
            conflicted = current.mark_conflicted(server_content or "", server_modified)
            self.cache.put(conflicted)
        logger.warning(f"Conflict on {path}: server has version {server_modified}")
        return conflicted

    def _present_conflict(self, record: FileRecord) -> Optional[Resolution]:
        """
        Show a conflicted record to the user and apply their choice.
        """
        view = ConflictView(
            path=record.path,
            local_content=record.content,
            server_content=record.conflict_server_content,
            server_modified=record.conflict_server_modified
        )
        return self._offer_resolution(view)

    def _offer_resolution(self, view: ConflictView) -> Optional[Resolution]:
        if self.presenter is None:
            logger.info(f"Conflict on {view.path} recorded, waiting for resolution")
            return None
        resolution = self.presenter.present(view)
        if resolution is not None:
            self.resolve_conflict(view.path, resolution)
        return resolution

    def _save_online_only(self, path: str, content: str) -> SaveOutcome:
        baseline = self._baselines.get(path, 0)
        try:
            version = self.api.write_file(path, content, last_modified=baseline)
        except VaultSyncConflictError as e:
            view = ConflictView(path, content, e.server_content or "", e.server_modified)
            self._unresolved[path] = view
            self._offer_resolution(view)
            return SaveOutcome.CONFLICT
        except VaultSyncAPIError as e:
            logger.error(f"Save of {path} failed and there is no local cache to keep it: {e}")
            return SaveOutcome.FAILED

        self._baselines[path] = version
        return SaveOutcome.SAVED

    def create(self, path: str, content: str = "") -> SaveOutcome:
        """
        Create a new file.

        Returns:
            SAVED, or SAVED_OFFLINE when the server could not be reached

        Raises:
            PolicyViolationError: If files may not be created at this path
            VaultSyncFileExistsError: If the file already exists on the server
        """
        self.policy.check("create", path, content)
        if self._fetch_server_policy(path):
            self.policy.check("create", path, content)

        if self.online_only:
            self._baselines[path] = self.api.create_file(path, content)
            return SaveOutcome.SAVED

        if self.online:
            try:
                version = self.api.create_file(path, content)
            except TRANSIENT_ERRORS as e:
                logger.warning(f"Create of {path} failed ({e}), queued for later")
            else:
                with self._state_lock:
                    self.cache.put(FileRecord.from_server(path, content, version))
                logger.info(f"Created {path} at version {version}")
                return SaveOutcome.SAVED

        with self._state_lock:
            self.cache.put(FileRecord.new_local_edit(path, content))
        self.queue.enqueue(QueueOperation.SAVE, path, content)
        return SaveOutcome.SAVED_OFFLINE

    def delete(self, path: str) -> SaveOutcome:
        """
        Delete a file locally and on the server.

        Returns:
            SAVED, SAVED_OFFLINE when queued, or FAILED if the server refused

        Raises:
            PolicyViolationError: If deleting is not allowed at this path
        """
        self.policy.check("delete", path)

        if not self.online_only:
            with self._state_lock:
                self.cache.delete(path)
                self.queue.remove_for_path(path)

            if not self.online:
                self.queue.enqueue(QueueOperation.DELETE, path)
                return SaveOutcome.SAVED_OFFLINE

        try:
            self.api.delete_file(path)
        except VaultSyncNotFoundError:
            logger.debug(f"{path} was already gone on the server")
        except TRANSIENT_ERRORS as e:
            if self.online_only:
                logger.error(f"Delete of {path} failed: {e}")
                return SaveOutcome.FAILED
            logger.warning(f"Delete of {path} failed ({e}), queued for later")
            self.queue.enqueue(QueueOperation.DELETE, path)
            return SaveOutcome.SAVED_OFFLINE
        except VaultSyncRequestError as e:
            logger.error(f"Server refused to delete {path}: {e}")
            return SaveOutcome.FAILED

        self._baselines.pop(path, None)
        logger.info(f"Deleted {path}")
        return SaveOutcome.SAVED

    def rename(self, source: str, destination: str) -> SaveOutcome:
        """
        Rename or move a file.

        A file that never reached the server is moved locally and its upload
        requeued under the new path. Anything else needs the server, because
        the rename is checked against the source version the client last saw.

        Returns:
            SAVED, SAVED_OFFLINE for a local-only move, CONFLICT if the source
            changed on the server, or FAILED when offline or refused

        Raises:
            PolicyViolationError: If the source may not be renamed or the
                                  destination does not allow new files
            VaultSyncFileExistsError: If the destination is already taken
        """
        self.policy.check("rename", source, destination=destination)
        if self._fetch_server_policy(destination):
            self.policy.check("rename", source, destination=destination)

        if self.online_only:
            return self._rename_online_only(source, destination)

        with self._state_lock:
            record = self.cache.get(source)
            if self.cache.get(destination) is not None:
                raise VaultSyncFileExistsError(f"File already exists: {destination}")

            if record is not None and record.server_modified_at is None:
                moved = record.move_to(destination, None)
                self.cache.delete(source)
                self.queue.remove_for_path(source)
                self.cache.put(moved)
                self.queue.enqueue(QueueOperation.SAVE, destination, moved.content)
                logger.info(f"Moved unsynced {source} to {destination} locally")
                return SaveOutcome.SAVED_OFFLINE

        if record is not None and record.has_conflict:
            logger.info(f"{source} has an unresolved conflict, not renamed")
            self._present_conflict(record)
            return SaveOutcome.CONFLICT

        if not self.online:
            logger.warning(f"Offline: cannot rename {source}")
            return SaveOutcome.FAILED

        try:
            version = self.api.rename_file(
                source, destination,
                last_modified=record.server_modified_at if record is not None else None
            )
        except VaultSyncConflictError as e:
            conflicted = self._record_conflict(source, e.server_content, e.server_modified)
            if conflicted is not None:
                self._present_conflict(conflicted)
            return SaveOutcome.CONFLICT
        except TRANSIENT_ERRORS as e:
            logger.warning(f"Rename of {source} failed: {e}")
            return SaveOutcome.FAILED
        except VaultSyncFileExistsError:
            raise
        except VaultSyncRequestError as e:
            logger.error(f"Server refused to rename {source}: {e}")
            return SaveOutcome.FAILED

        with self._state_lock:
            current = self.cache.get(source)
            self.cache.delete(source)
            self.queue.remove_for_path(source)
            moved = current.move_to(destination, version) if current is not None else None
            if moved is not None:
                self.cache.put(moved)
        logger.info(f"Renamed {source} to {destination} (version {version})")

        if moved is not None and moved.is_pending:
            return self._push(moved)
        return SaveOutcome.SAVED

    def _rename_online_only(self, source: str, destination: str) -> SaveOutcome:
        try:
            version = self.api.rename_file(source, destination, last_modified=self._baselines.get(source))
        except VaultSyncConflictError as e:
            logger.warning(f"{source} changed on the server (version {e.server_modified}), reload before renaming")
            return SaveOutcome.CONFLICT
        except VaultSyncFileExistsError:
            raise
        except VaultSyncAPIError as e:
            logger.error(f"Rename of {source} failed: {e}")
            return SaveOutcome.FAILED

        self._baselines.pop(source, None)
        self._baselines[destination] = version
        return SaveOutcome.SAVED

    def _fetch_server_policy(self, path: str) -> bool:
        """
        Ask the server for the policy of a path the client has not seen yet.

        Returns:
            True if a new policy was stored
        """
        if not self.online or self.policy.knows(path):
            return False
        try:
            policy_data = self.api.get_policy(path)
        except (TRANSIENT_ERRORS + (VaultSyncRequestError,)) as e:
            logger.debug(f"No server policy for {path}: {e}")
            return False
        self.policy.remember(path, policy_data)
        return True

    def load(self, path: str) -> Optional[FileRecord]:
        """
        Open a file, refreshing it from the server when possible.

        The server copy is merged with the reconciliation rules, so a pending
        local edit is never replaced. Offline, the cached record is returned.

        Returns:
            FileRecord, or None if the file exists nowhere
        """
        if self.online_only:
            try:
                fetched = self.api.read_file(path)
            except VaultSyncNotFoundError:
                return None
            self.policy.remember(path, fetched.get("policy"))
            self._baselines[path] = fetched["modified"]
            return FileRecord.from_server(path, fetched["content"], fetched["modified"])

        if self.online:
            try:
                fetched = self.api.read_file(path)
            except VaultSyncNotFoundError:
                logger.debug(f"{path} is not on the server")
            except TRANSIENT_ERRORS as e:
                logger.info(f"Using cached copy of {path}: {e}")
            else:
                self.policy.remember(path, fetched.get("policy"))
                if path not in self._queued_deletes():
                    self._reconcile_file(path, fetched["modified"], fetched=fetched)

        with self._state_lock:
            return self.cache.get(path)

    # ==================== Queue Drain ====================

    def drain_queue(self) -> DrainResult:
        """
        Replay queued writes in order.

        Only one drain runs at a time; a call made while another drain is in
        progress returns immediately with skipped=True. Items for conflicted
        files stay queued until the conflict is resolved. A transient failure
        ends the pass and keeps the item; a rejected item is dropped and
        reported in failed.

        Returns:
            DrainResult
        """
        if self.online_only:
            return DrainResult()

        if not self._drain_lock.acquire(blocking=False):
            logger.debug("Drain already in progress, skipping")
            return DrainResult(skipped=True)

        try:
            if not self.online:
                return DrainResult(skipped=True, remaining=self.queue.count())

            result = DrainResult()
            items = self.queue.list_items()
            if items:
                logger.info(f"Draining {len(items)} queued operation(s)")

            for item in items:
                if not self.queue.contains(item.id):
                    # Dropped by a push or resolution since the pass started
                    continue
                with self._state_lock:
                    record = self.cache.get(item.path)
                if record is not None and record.has_conflict:
                    result.deferred += 1
                    continue

                try:
                    version = self._replay(item)
                except TRANSIENT_ERRORS as e:
                    logger.warning(f"Drain stopped at {item.operation.value} of {item.path}: {e}")
                    break
                except VaultSyncRequestError as e:
                    logger.error(f"Dropping queued {item.operation.value} of {item.path}, server refused it: {e}")
                    self.queue.dequeue(item.id)
                    result.failed.append(f"{item.operation.value} {item.path}: {e}")
                    continue

                self.queue.dequeue(item.id)
                result.replayed += 1
                if item.operation == QueueOperation.SAVE:
                    self._apply_accepted_write(item.path, item.content, version)

            result.remaining = self.queue.count()
            if items:
                logger.info(
                    f"Drain finished: {result.replayed} replayed, {result.deferred} deferred, "
                    f"{len(result.failed)} failed, {result.remaining} remaining"
                )
            return result
        finally:
            self._drain_lock.release()

    def _replay(self, item: QueueItem) -> Optional[int]:
        """
        Send one queued item as a force write or delete.

        Returns:
            New server version for saves, None for deletes
        """
        if item.operation == QueueOperation.SAVE:
            return self.api.write_file(item.path, item.content)
        try:
            self.api.delete_file(item.path)
        except VaultSyncNotFoundError:
            logger.debug(f"{item.path} was already gone on the server")
        return None

    # ==================== Conflict Resolution ====================

    def resolve_conflict(self, path: str, resolution: Resolution) -> Optional[FileRecord]:
        """
        Apply the user's choice for a conflicted file.

        KEEP_LOCAL force-writes the local content. If the server cannot be
        reached the conflict is still cleared and the write is queued on top
        of the server version the user saw.

        KEEP_SERVER replaces the local content with the server's copy.

        Either way queued operations for the path are dropped.

        Returns:
            The resulting record (None in online-only mode)

        Raises:
            ValueError: If the path has no unresolved conflict
            PolicyViolationError: If keeping the local content breaks the policy
        """
        if self.online_only:
            return self._resolve_online_only(path, resolution)

        with self._state_lock:
            record = self.cache.get(path)
        if record is None or not record.has_conflict:
            raise ValueError(f"No unresolved conflict for {path}")

        if resolution == Resolution.KEEP_SERVER:
            with self._state_lock:
                current = self.cache.get(path) or record
                resolved = current.mark_synced(record.conflict_server_modified, content=record.conflict_server_content)
                self.cache.put(resolved)
                self.queue.remove_for_path(path)
            logger.info(f"Conflict on {path} resolved: kept server version {record.conflict_server_modified}")
            if self.presenter is not None:
                self.presenter.reload_editor(path, resolved.content)
            return resolved

        self.policy.check("update", path, record.content)
        try:
            version = self.api.write_file(path, record.content)
        except TRANSIENT_ERRORS as e:
            with self._state_lock:
                current = self.cache.get(path) or record
                pending = current.clear_conflict(record.conflict_server_modified)
                self.cache.put(pending)
                self.queue.remove_for_path(path)
                self.queue.enqueue(QueueOperation.SAVE, path, pending.content)
            logger.warning(f"Conflict on {path} resolved locally, upload queued: {e}")
            return pending

        with self._state_lock:
            current = self.cache.get(path) or record
            self.queue.remove_for_path(path)
            if current.content == record.content:
                resolved = current.mark_synced(version)
            else:
                # Edited again while the resolution was uploading
                resolved = current.clear_conflict(version)
                self.queue.enqueue(QueueOperation.SAVE, path, resolved.content)
            self.cache.put(resolved)
        logger.info(f"Conflict on {path} resolved: kept local version, server now at {version}")
        return resolved

    def _resolve_online_only(self, path: str, resolution: Resolution) -> None:
        view = self._unresolved.get(path)
        if view is None:
            raise ValueError(f"No unresolved conflict for {path}")

        if resolution == Resolution.KEEP_LOCAL:
            self.policy.check("update", path, view.local_content)
            self._baselines[path] = self.api.write_file(path, view.local_content)
        else:
            self._baselines[path] = view.server_modified
            if self.presenter is not None:
                self.presenter.reload_editor(path, view.server_content)
        del self._unresolved[path]
        logger.info(f"Conflict on {path} resolved: kept {resolution.value} version")
        return None

    def list_conflicts(self) -> List[ConflictView]:
        """Get every unresolved conflict."""
        if self.online_only:
            return list(self._unresolved.values())
        return [
            ConflictView(record.path, record.content, record.conflict_server_content, record.conflict_server_modified)
            for record in self.cache.get_conflicted()
        ]

    # ==================== Status & Background Drain ====================

    def status(self) -> Dict:
        """
        Summarize sync state for a status indicator.

        Returns:
            dict with online, online_only, pending, conflicts, queued and label
        """
        if self.online_only:
            pending = queued = 0
            conflicts = len(self._unresolved)
        else:
            pending = len(self.cache.get_pending())
            conflicts = len(self.cache.get_conflicted())
            queued = self.queue.count()

        if not self.online:
            label = "Offline"
        elif conflicts:
            label = f"{conflicts} conflict(s)"
        elif pending or queued:
            label = f"Syncing {max(pending, queued)}"
        else:
            label = "Synced"

        return {
            "online": self.online,
            "online_only": self.online_only,
            "pending": pending,
            "conflicts": conflicts,
            "queued": queued,
            "label": label
        }

    def start_periodic_drain(self, interval: Optional[float] = None):
        """
        Start a daemon thread that syncs queued writes every interval seconds.
        """
        if interval is not None:
            self.drain_interval = interval
        if self.online_only or (self._drain_thread is not None and self._drain_thread.is_alive()):
            return

        self._stop_event.clear()
        self._drain_thread = threading.Thread(target=self._periodic_drain_loop, name="vaultsync-drain", daemon=True)
        self._drain_thread.start()
        logger.info(f"Background drain every {self.drain_interval}s")

    def _periodic_drain_loop(self):
        while not self._stop_event.wait(self.drain_interval):
            if not self.online or self.queue.count() == 0:
                continue
            try:
                self.sync_now()
            except Exception as e:
                # Keep the background thread alive; the next tick retries
                logger.error(f"Background sync failed: {e}", exc_info=True)

    def stop(self, timeout: float = 5.0):
        """Stop the background drain thread."""
        self._stop_event.set()
        if self._drain_thread is not None:
            self._drain_thread.join(timeout)
            self._drain_thread = None
