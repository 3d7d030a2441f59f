"""
VaultSync Server - Policy API Model

Pydantic model for the effective policy of a path.
"""

from typing import Optional
from pydantic import BaseModel


class PolicyResponse(BaseModel):
    readOnly: bool = False
    allowCreate: bool = True
    allowRename: bool = True
    allowDelete: bool = True
    maxLength: Optional[int] = None
