"""
VaultSync Client - Exceptions Package

Contains all exception classes for the VaultSync client.

Transient errors (transport failures and 5xx responses) are retried later
through the pending-operation queue. Request errors are terminal for the
operation that caused them.

Author: VaultSync Project
"""

from .api_error import VaultSyncAPIError
from .transport_error import VaultSyncTransportError
from .server_error import VaultSyncServerError
from .request_error import VaultSyncRequestError
from .conflict_error import VaultSyncConflictError
from .file_exists_error import VaultSyncFileExistsError
from .not_found_error import VaultSyncNotFoundError
from .policy_violation_error import PolicyViolationError

# Errors worth retrying once connectivity returns
TRANSIENT_ERRORS = (VaultSyncTransportError, VaultSyncServerError)

__all__ = [
    'VaultSyncAPIError',
    'VaultSyncTransportError',
    'VaultSyncServerError',
    'VaultSyncRequestError',
    'VaultSyncConflictError',
    'VaultSyncFileExistsError',
    'VaultSyncNotFoundError',
    'PolicyViolationError',
    'TRANSIENT_ERRORS'
]
