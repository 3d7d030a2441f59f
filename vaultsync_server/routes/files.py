"""
VaultSync Server - File Operations Endpoints

This module contains the endpoints clients use to list, read, write, create,
rename and delete vault files. Writes are guarded by the version token the client
last saw; a stale token is answered with 409 and the server's copy so the
client can present the conflict.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, Request, status

from vaultsync_server.errors import VaultAPIError
from vaultsync_server.models.api import (
    FileListEntry, FileReadResponse, FileWriteRequest, FileWriteResponse,
    FileCreateRequest, FileCreateResponse, FileDeleteResponse,
    FileRenameRequest, FileRenameResponse
)
from vaultsync_server.restrictions import GetPolicyForPath, ValidateOperation
from vaultsync_server.vault_storage import VaultStore, PathTraversalError, VaultConflictError, NotTextError


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


# ==================== Helpers ====================

def _GetVault(request: Request) -> VaultStore:
    return request.app.state.vault


def _GetRestrictions(request: Request) -> Dict[str, Any]:
    return request.app.state.config.get("restrictions", {})


def _EnforcePolicy(request: Request, operation: str, path: str, content: Optional[str] = None,
                   destination: Optional[str] = None) -> None:
    """
    Reject an operation the restriction rules forbid

    Raises:
        VaultAPIError: 403 POLICY_VIOLATION with the effective policy
    """
    allowed, reason, policy = ValidateOperation(_GetRestrictions(request), operation, path, content, destination)
    if not allowed:
        raise VaultAPIError(reason, status.HTTP_403_FORBIDDEN, "POLICY_VIOLATION", policy=policy)


def _OutsideVault(error: PathTraversalError) -> VaultAPIError:
    return VaultAPIError(str(error), status.HTTP_400_BAD_REQUEST, "PATH_OUTSIDE_VAULT")


def _Conflict(error: VaultConflictError) -> VaultAPIError:
    return VaultAPIError(
        "File has been modified on the server",
        status.HTTP_409_CONFLICT,
        "CONFLICT",
        details={"serverContent": error.current_content, "serverModified": error.current_version}
    )


# ==================== File Operations Endpoints ====================

@router.get("/files", response_model=List[FileListEntry], tags=["Files"])
async def list_files(
    request: Request,
    folder: str = Query("", description="Vault-relative folder, empty for the whole vault")
):
    """
    List files recursively with their current version tokens

    Hidden files and folders are not listed, nor are binary attachments.

    Args:
        folder: Folder to list

    Returns:
        List[FileListEntry]: Files sorted by path
    """
    try:
        files = _GetVault(request).ListFiles(folder)
    except PathTraversalError as e:
        raise _OutsideVault(e)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error listing folder '{folder}': {str(e)}")
        raise VaultAPIError("Failed to retrieve file list")

    logger.info(f"Listed {len(files)} files in '{folder or '/'}'")
    return [FileListEntry(**entry) for entry in files]


@router.get("/files/{file_path:path}", response_model=FileReadResponse, tags=["Files"])
async def read_file(file_path: str, request: Request):
    """
    Read a file together with its version token and effective policy

    Raises:
        VaultAPIError: 404 if the file does not exist
    """
    try:
        stored = _GetVault(request).Read(file_path)
    except PathTraversalError as e:
        raise _OutsideVault(e)
    except NotTextError as e:
        raise VaultAPIError(str(e), status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, "NOT_TEXT")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error reading {file_path}: {str(e)}")
        raise VaultAPIError("Failed to read file")

    if stored is None:
        raise VaultAPIError(f"File not found: {file_path}", status.HTTP_404_NOT_FOUND, "NOT_FOUND")

    return FileReadResponse(
        content=stored.content,
        modified=stored.version,
        policy=GetPolicyForPath(_GetRestrictions(request), stored.path)
    )


@router.put("/files/{file_path:path}", response_model=FileWriteResponse, tags=["Files"])
async def write_file(file_path: str, body: FileWriteRequest, request: Request):
    """
    Write a file, rejecting the write if lastModified is stale

    Args:
        file_path: Vault-relative path
        body: New content and the version it was based on

    Returns:
        FileWriteResponse: The new version token

    Raises:
        VaultAPIError: 409 CONFLICT with the server's content and version,
                       403 POLICY_VIOLATION, or 400 PATH_OUTSIDE_VAULT
    """
    _EnforcePolicy(request, "update", file_path, body.content)

    try:
        stored = _GetVault(request).Write(file_path, body.content, expected_version=body.lastModified)
    except VaultConflictError as e:
        raise _Conflict(e)
    except PathTraversalError as e:
        raise _OutsideVault(e)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error writing {file_path}: {str(e)}")
        raise VaultAPIError("Failed to write file")

    return FileWriteResponse(success=True, modified=stored.version)


@router.post("/files/{file_path:path}", response_model=FileCreateResponse,
             status_code=status.HTTP_201_CREATED, tags=["Files"])
async def create_file(file_path: str, body: FileCreateRequest, request: Request):
    """
    Create a new file

    Raises:
        VaultAPIError: 409 FILE_EXISTS if the path is taken
    """
    _EnforcePolicy(request, "create", file_path, body.content)

    try:
        stored = _GetVault(request).Create(file_path, body.content)
    except FileExistsError:
        raise VaultAPIError(f"File already exists: {file_path}", status.HTTP_409_CONFLICT, "FILE_EXISTS")
    except PathTraversalError as e:
        raise _OutsideVault(e)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error creating {file_path}: {str(e)}")
        raise VaultAPIError("Failed to create file")

    return FileCreateResponse(success=True, path=stored.path, modified=stored.version)


@router.put("/files", response_model=FileRenameResponse, tags=["Files"])
async def rename_file(body: FileRenameRequest, request: Request):
    """
    Rename or move a file

    Args:
        body: {"from", "to", "lastModified"} with the source version the client last saw

    Returns:
        FileRenameResponse: The new path and its version token

    Raises:
        VaultAPIError: 404 if the source does not exist, 409 FILE_EXISTS if the
                       destination is taken, 409 CONFLICT if lastModified is stale,
                       403 POLICY_VIOLATION
    """
    _EnforcePolicy(request, "rename", body.source, destination=body.destination)

    try:
        renamed = _GetVault(request).Rename(body.source, body.destination, expected_version=body.lastModified)
    except FileNotFoundError:
        raise VaultAPIError(f"File not found: {body.source}", status.HTTP_404_NOT_FOUND, "NOT_FOUND")
    except FileExistsError:
        raise VaultAPIError(f"File already exists: {body.destination}", status.HTTP_409_CONFLICT, "FILE_EXISTS")
    except VaultConflictError as e:
        raise _Conflict(e)
    except PathTraversalError as e:
        raise _OutsideVault(e)
    except OSError as e:
        logger.error(f"Error renaming {body.source} to {body.destination}: {str(e)}")
        raise VaultAPIError("Failed to rename file")

    return FileRenameResponse(
        success=True,
        previousPath=body.source,
        path=renamed['path'],
        modified=renamed['version']
    )


@router.delete("/files/{file_path:path}", response_model=FileDeleteResponse, tags=["Files"])
async def delete_file(file_path: str, request: Request):
    """
    Delete a file

    Raises:
        VaultAPIError: 404 if the file does not exist
    """
    _EnforcePolicy(request, "delete", file_path)

    try:
        deleted = _GetVault(request).Delete(file_path)
    except PathTraversalError as e:
        raise _OutsideVault(e)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error deleting {file_path}: {str(e)}")
        raise VaultAPIError("Failed to delete file")

    if not deleted:
        raise VaultAPIError(f"File not found: {file_path}", status.HTTP_404_NOT_FOUND, "NOT_FOUND")

    return FileDeleteResponse(success=True, path=file_path)
