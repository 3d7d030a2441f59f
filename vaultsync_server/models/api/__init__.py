"""
VaultSync Server - API Models Package

This package contains Pydantic models for all API endpoints.
"""

from vaultsync_server.models.api.file_metadata import FileListEntry
from vaultsync_server.models.api.policy import PolicyResponse
from vaultsync_server.models.api.file_operations import (
    FileReadResponse,
    FileWriteRequest,
    FileWriteResponse,
    FileCreateRequest,
    FileCreateResponse,
    FileDeleteResponse,
    FileRenameRequest,
    FileRenameResponse
)

__all__ = [
    'FileListEntry',
    'PolicyResponse',
    'FileReadResponse',
    'FileWriteRequest',
    'FileWriteResponse',
    'FileCreateRequest',
    'FileCreateResponse',
    'FileDeleteResponse',
    'FileRenameRequest',
    'FileRenameResponse',
]
