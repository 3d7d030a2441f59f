"""
VaultSync Client - CLI Mode Module

Implements the command-line interface: sets up logging to a timestamped
file, builds the sync coordinator from config.json and runs one command.

Author: VaultSync Project
"""

import sys
import logging
from pathlib import Path
from datetime import datetime
from typing import Any, Optional, Tuple

from vaultsync_client.managers import ConfigManager, CacheStore, SyncQueue, LocalDatabase, open_local_database
from vaultsync_client.models import Resolution, SaveOutcome
from vaultsync_client.api import VaultSyncAPI
from vaultsync_client.exceptions import VaultSyncAPIError, PolicyViolationError
from vaultsync_client.operations import ConflictNotifier, ConsoleConflictNotifier, ConflictPresenter, SyncCoordinator
from vaultsync_client.policy_service import PolicyService


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_CONFLICT_PENDING = 5
EXIT_POLICY_VIOLATION = 6

LOG_PREFIX = "vaultsync-"


def setup_cli_logging(config_manager: ConfigManager) -> Path:
    """
    Setup logging for CLI mode with timestamped log file.

    Creates log file with format: vaultsync-YYYY-MM-DD-HH-MM-SS.log
    in a "logs" subdirectory of the config directory.

    Args:
        config_manager: ConfigManager instance for log settings

    Returns:
        Path to the created log file
    """
    log_level = config_manager.get("log_level", "INFO")

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_dir = config_manager.base_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{LOG_PREFIX}{timestamp}.log"

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)  # Also output to console
        ],
        force=True
    )

    logger = logging.getLogger(__name__)
    logger.info(f"VaultSync CLI Mode - Log file: {log_file}")
    logger.info(f"Log level: {log_level}")

    return log_file


def cleanup_old_logs(config_manager: ConfigManager, current_log: Path) -> int:
    """
    Delete log files older than retention period.

    Args:
        config_manager: ConfigManager instance for retention settings
        current_log: Path to current log file (don't delete this)

    Returns:
        Number of deleted log files
    """
    logger = logging.getLogger(__name__)
    retention_days = config_manager.get("log_retention_days", 30)

    if retention_days <= 0:
        return 0  # Retention disabled

    cutoff_time = datetime.now().timestamp() - (retention_days * 86400)

    deleted_count = 0
    for log_file in current_log.parent.glob(f"{LOG_PREFIX}*.log"):
        if log_file == current_log:
            continue

        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                deleted_count += 1
        except OSError as e:
            logger.warning(f"Failed to delete old log file {log_file}: {e}")

    if deleted_count > 0:
        logger.info(f"Deleted {deleted_count} old log file(s)")
    return deleted_count


def build_coordinator(
    config_manager: ConfigManager,
    notifier: Optional[ConflictNotifier] = None,
    session: Optional[Any] = None
) -> Tuple[SyncCoordinator, Optional[LocalDatabase]]:
    """
    Wire the coordinator from configuration.

    Args:
        config_manager: Loaded ConfigManager
        notifier: Conflict notifier; conflicts are only recorded when None
        session: Optional HTTP session handed to the API client

    Returns:
        (coordinator, local database or None in online-only mode)
    """
    api_client = VaultSyncAPI(
        config_manager.get("server_url"),
        config_manager.get("server_port"),
        verify_ssl=config_manager.get("verify_ssl", True),
        timeout=config_manager.get("request_timeout_seconds", 10),
        session=session
    )

    database = open_local_database(str(config_manager.get_cache_path()))
    cache_store = CacheStore(database) if database is not None else None
    sync_queue = SyncQueue(database) if database is not None else None

    coordinator = SyncCoordinator(
        api_client,
        cache_store=cache_store,
        sync_queue=sync_queue,
        policy_service=PolicyService(config_manager.get("restrictions")),
        presenter=ConflictPresenter(notifier) if notifier is not None else None,
        drain_interval=config_manager.get("drain_interval_seconds", 30)
    )
    return coordinator, database


def _print_status(status: dict):
    print(f"Status: {status['label']}")
    print(f"  online:      {status['online']}")
    print(f"  online-only: {status['online_only']}")
    print(f"  pending:     {status['pending']}")
    print(f"  queued:      {status['queued']}")
    print(f"  conflicts:   {status['conflicts']}")


def _read_content(source: Optional[str]) -> str:
    if source:
        return Path(source).read_text(encoding='utf-8')
    return sys.stdin.read()


def execute_command(args, coordinator: SyncCoordinator) -> int:
    """
    Run one parsed command against a coordinator.

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)

    def cli_progress_callback(message: str, current: int, total: int):
        if total > 0:
            percentage = (current / total) * 100
            logger.info(f"[{percentage:5.1f}%] {message}")
        else:
            logger.info(message)

    command = args.command

    if command == "reconcile":
        result = coordinator.reconcile(cli_progress_callback)
        print(f"Reconcile: {result.summary()}")
        for error in result.errors:
            print(f"  error: {error}")
        if not result.success:
            return EXIT_FAILURE
        return EXIT_CONFLICT_PENDING if coordinator.list_conflicts() else EXIT_SUCCESS

    if command == "drain":
        reconcile_result, drain_result = coordinator.on_connectivity_restored()
        print(f"Reconcile: {reconcile_result.summary()}")
        print(f"Drain: {drain_result.replayed} replayed, {drain_result.deferred} deferred, "
              f"{len(drain_result.failed)} failed, {drain_result.remaining} remaining")
        for failure in drain_result.failed:
            print(f"  failed: {failure}")
        if not reconcile_result.success or drain_result.failed:
            return EXIT_FAILURE
        return EXIT_CONFLICT_PENDING if drain_result.deferred or coordinator.list_conflicts() else EXIT_SUCCESS

    if command == "status":
        _print_status(coordinator.status())
        return EXIT_SUCCESS

    if command == "conflicts":
        conflicts = coordinator.list_conflicts()
        for view in conflicts:
            print(f"{view.path} (server version {view.server_modified})")
        if not conflicts:
            print("No conflicts")
        return EXIT_CONFLICT_PENDING if conflicts else EXIT_SUCCESS

    if command == "save":
        outcome = coordinator.save(args.path, _read_content(args.source))
        print(f"{args.path}: {outcome.value}")
        if outcome == SaveOutcome.CONFLICT:
            still_conflicted = any(view.path == args.path for view in coordinator.list_conflicts())
            return EXIT_CONFLICT_PENDING if still_conflicted else EXIT_SUCCESS
        return EXIT_FAILURE if outcome == SaveOutcome.FAILED else EXIT_SUCCESS

    if command == "delete":
        outcome = coordinator.delete(args.path)
        print(f"{args.path}: {outcome.value}")
        return EXIT_FAILURE if outcome == SaveOutcome.FAILED else EXIT_SUCCESS

    if command == "rename":
        outcome = coordinator.rename(args.path, args.destination)
        print(f"{args.path} -> {args.destination}: {outcome.value}")
        if outcome == SaveOutcome.CONFLICT:
            return EXIT_CONFLICT_PENDING
        return EXIT_FAILURE if outcome == SaveOutcome.FAILED else EXIT_SUCCESS

    if command == "resolve":
        resolution = Resolution.KEEP_LOCAL if args.keep == "local" else Resolution.KEEP_SERVER
        try:
            record = coordinator.resolve_conflict(args.path, resolution)
        except ValueError as e:
            print(str(e), file=sys.stderr)
            return EXIT_FAILURE
        state = record.state.value if record is not None else "resolved"
        print(f"{args.path}: {state}")
        return EXIT_SUCCESS

    logger.error(f"Unknown command: {command}")
    return EXIT_FAILURE


def run_cli_operation(args) -> int:
    """
    Execute a CLI command.

    Process:
    1. Load configuration
    2. Setup logging to timestamped file
    3. Build the coordinator (online-only if the cache cannot be opened)
    4. Run the command and map the outcome to an exit code

    Args:
        args: Parsed arguments from client.build_parser()

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logger = None
    coordinator = None
    database = None

    try:
        config_mgr = ConfigManager(Path(args.config_dir) if args.config_dir else None)
        try:
            config_mgr.load_config()
        except (ValueError, OSError) as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return EXIT_CONFIG_ERROR

        log_file = setup_cli_logging(config_mgr)
        logger = logging.getLogger(__name__)
        cleanup_old_logs(config_mgr, log_file)

        logger.info("=" * 60)
        logger.info(f"Starting VaultSync CLI: {args.command.upper()}")
        logger.info("=" * 60)

        # Prompt for conflicts only when stdin is free for answers
        interactive = sys.stdin.isatty() and not (args.command == "save" and not args.source)
        notifier = ConsoleConflictNotifier() if interactive else None

        coordinator, database = build_coordinator(config_mgr, notifier)
        return execute_command(args, coordinator)

    except PolicyViolationError as e:
        if logger:
            logger.error(f"Policy violation: {e}")
        print(f"Not allowed: {e}", file=sys.stderr)
        return EXIT_POLICY_VIOLATION

    except VaultSyncAPIError as e:
        if logger:
            logger.error(f"API Error: {e}")
        else:
            print(f"API Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    except KeyboardInterrupt:
        if logger:
            logger.warning("Operation cancelled by user (Ctrl+C)")
        else:
            print("\nOperation cancelled by user", file=sys.stderr)
        return EXIT_FAILURE

    except Exception as e:
        if logger:
            logger.exception(f"Unexpected error: {e}")
        else:
            print(f"Unexpected error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    finally:
        if coordinator is not None:
            coordinator.api.close()
        if database is not None:
            database.dispose()
