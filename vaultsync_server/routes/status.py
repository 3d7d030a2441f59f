"""
VaultSync Server - Status Endpoints

This module contains the health check and the policy lookup endpoint.
"""

from datetime import datetime, timezone
from fastapi import APIRouter, Query, Request

from vaultsync_server import __version__
from vaultsync_server.models.api import PolicyResponse
from vaultsync_server.restrictions import GetPolicyForPath


# Create router instance
router = APIRouter()


# ==================== Health Check Endpoint ====================

@router.get("/health", tags=["Status"])
async def health_check():
    """
    Health check endpoint to verify server is running

    Returns:
        dict: Server status information
    """
    return {
        "status": "healthy",
        "service": "VaultSync Server",
        "version": __version__,
        "timestamp_utc": datetime.now(timezone.utc).isoformat()
    }


# ==================== Policy Endpoint ====================

@router.get("/policy", response_model=PolicyResponse, tags=["Status"])
async def get_policy(request: Request, path: str = Query(..., description="Vault-relative path")):
    """
    Get the effective restriction policy for a path

    Clients use this to disable editing of read-only files before a write
    is attempted.
    """
    return GetPolicyForPath(request.app.state.config.get("restrictions", {}), path)
