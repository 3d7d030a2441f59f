"""
VaultSync Server - File Operations API Models

Pydantic models for reading, writing, creating, renaming and deleting vault
files.
"""

from typing import Optional
from pydantic import BaseModel, Field

from vaultsync_server.models.api.policy import PolicyResponse


class FileReadResponse(BaseModel):
    content: str
    modified: int
    policy: PolicyResponse


class FileWriteRequest(BaseModel):
    """
    Body of PUT /files/{path}

    lastModified is the version the client based its edit on. Leaving it
    out makes the write unconditional.
    """
    content: str
    lastModified: Optional[int] = None


class FileWriteResponse(BaseModel):
    success: bool
    modified: int


class FileCreateRequest(BaseModel):
    content: str = ""


class FileCreateResponse(BaseModel):
    success: bool
    path: str
    modified: int


class FileDeleteResponse(BaseModel):
    success: bool
    path: str


class FileRenameRequest(BaseModel):
    """
    Body of PUT /files

    Sent as {"from": ..., "to": ..., "lastModified": ...}. lastModified is
    the version of the source the client last saw; leaving it out makes the
    rename unconditional.
    """
    source: str = Field(alias="from", min_length=1)
    destination: str = Field(alias="to", min_length=1)
    lastModified: Optional[int] = None


class FileRenameResponse(BaseModel):
    success: bool
    previousPath: str
    path: str
    modified: int
