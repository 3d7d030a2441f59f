"""
VaultSync Client - Local Database Base

Declarative base shared by the local cache tables.

Author: VaultSync Project
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
