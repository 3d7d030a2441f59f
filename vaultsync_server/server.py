"""
VaultSync Server - Main FastAPI Application

This module builds the FastAPI application that serves the vault to
offline-first clients and runs it under uvicorn.
"""

import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from vaultsync_server import __version__
from vaultsync_server.config import LoadServerConfig, MergeConfig
from vaultsync_server.errors import RegisterErrorHandlers
from vaultsync_server.managers.database_manager import DatabaseManager
from vaultsync_server.routes import files, status
from vaultsync_server.vault_storage import VaultStore

logger = logging.getLogger(__name__)


# ==================== Logging ====================

def ConfigureLogging(log_dir: str = "logs", log_level: str = "INFO") -> Path:
    """
    Configure logging to write to both console and a rotating file

    Args:
        log_dir: Directory for log files (created if missing)
        log_level: Root log level name

    Returns:
        Path: Log file in use
    """
    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_filename = logs_dir / f"vaultsync-server-{datetime.now().strftime('%Y-%m-%d')}.log"

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            # File handler with rotation (max 10MB per file, keep 10 backup files)
            RotatingFileHandler(
                log_filename,
                maxBytes=10 * 1024 * 1024,
                backupCount=10,
                encoding='utf-8'
            )
        ],
        force=True
    )
    return log_filename


# ==================== Lifespan Events ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler for startup and shutdown
    """
    logger.info("VaultSync Server starting up...")
    logger.info(f"Serving vault at {app.state.vault.vault_root}")

    yield

    logger.info("VaultSync Server shutting down...")
    app.state.db_manager.Dispose()
    logger.info("Shutdown complete")


# ==================== FastAPI Application ====================

def CreateApp(config: Optional[Dict[str, Any]] = None) -> FastAPI:
    """
    Build the FastAPI application

    The metadata database and vault store are created here rather than at
    import time so tests can point each app at its own directories.

    Args:
        config: Settings merged over DEFAULT_SERVER_CONFIG

    Returns:
        FastAPI: Configured application
    """
    settings = MergeConfig(config)

    db_manager = DatabaseManager(settings["database_path"])
    db_manager.InitializeDatabase()
    vault = VaultStore(settings["vault_path"], db_manager)

    app = FastAPI(
        title="VaultSync Server",
        description="Sync server for an offline-first markdown vault",
        version=__version__,
        lifespan=lifespan
    )

    app.state.config = settings
    app.state.db_manager = db_manager
    app.state.vault = vault

    # Browser based editors call the API directly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get("cors_origins", ["*"]),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    RegisterErrorHandlers(app)

    app.include_router(status.router)
    app.include_router(files.router)

    return app


# ==================== Entry Point ====================

def ParseArguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='VaultSync Server')
    parser.add_argument('--config', help='Path to server config JSON (default: vaultsync-server.json)')
    parser.add_argument('--host', help='Override bind address')
    parser.add_argument('--port', type=int, help='Override port')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the server under uvicorn
    """
    args = ParseArguments(argv)

    try:
        config = LoadServerConfig(args.config)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if args.host:
        config["host"] = args.host
    if args.port:
        config["port"] = args.port

    log_file = ConfigureLogging(config["log_dir"], config["log_level"])
    logger.info(f"Logging to {log_file}")

    app = CreateApp(config)
    uvicorn.run(app, host=config["host"], port=config["port"], log_level=str(config["log_level"]).lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
