"""
VaultSync Server

Authoritative store for a single-user markdown vault. Exposes the file
endpoints used by offline-first clients to push, pull, and reconcile edits.
"""

__version__ = "1.0.0"
