"""
VaultSync Server - File Metadata API Model

Pydantic model for file listing responses.
"""

from pydantic import BaseModel


class FileListEntry(BaseModel):
    """One file in a folder listing; modified is the file's version token"""
    path: str
    name: str
    modified: int
