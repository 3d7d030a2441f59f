"""
VaultSync Server - Models Package

This package contains all data models for the VaultSync server:
- database: SQLAlchemy database models
- api: API endpoint Pydantic models
- infrastructure: Dataclass models returned by the vault store
"""
