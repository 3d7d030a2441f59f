"""
VaultSync Client

Offline-first client for a VaultSync markdown vault: local cache, pending
operation queue, and the sync coordinator that reconciles both with the
server.
"""

__version__ = "1.0.0"
