"""
VaultSync Client - API Communication Module

Handles all communication with the VaultSync server via REST API and maps
HTTP outcomes onto the client's exception types.

Author: VaultSync Project
"""

import logging
import requests
from typing import Optional, Dict, Any, List
from urllib.parse import quote

from vaultsync_client.exceptions import (
    VaultSyncTransportError,
    VaultSyncServerError,
    VaultSyncRequestError,
    VaultSyncConflictError,
    VaultSyncFileExistsError,
    VaultSyncNotFoundError
)

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10


class VaultSyncAPI:
    """
    API client for communicating with the VaultSync server.

    Responsibilities:
    - Build file endpoint URLs for vault paths
    - Make requests with a bounded timeout
    - Translate connection failures, conflicts and error responses into exceptions
    """

    def __init__(
        self,
        server_url: str,
        server_port: Optional[int] = None,
        verify_ssl: bool = True,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[Any] = None
    ):
        """
        Initialize API client.

        Args:
            server_url: Base URL of server (e.g., "http://localhost")
            server_port: Server port number, or None if the URL already carries it
            verify_ssl: Whether to verify SSL certificates
            timeout: Per-request timeout in seconds
            session: Object with a requests-compatible request() method.
                     A new requests.Session is created when omitted.
        """
        server_url = server_url.rstrip("/")
        self.base_url = f"{server_url}:{server_port}" if server_port else server_url
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self._owns_session = session is None
        # Use session for connection pooling to avoid TCP handshake overhead on each request
        if session is None:
            session = requests.Session()
            session.verify = verify_ssl
        self.session = session
        logger.debug(f"Initialized API client for {self.base_url} (SSL verification: {self.verify_ssl})")

    def close(self):
        """
        Close the session and release resources.
        """
        if self._owns_session and self.session is not None:
            self.session.close()
            logger.debug("API client session closed")

    # ---------- requests ----------

    def _make_request(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        Make an API request and return the parsed JSON body.

        Args:
            method: HTTP method (GET, PUT, etc.)
            endpoint: API endpoint (e.g., "/files/notes/a.md")
            **kwargs: Additional arguments for the request

        Returns:
            Parsed JSON response

        Raises:
            VaultSyncTransportError: If the server cannot be reached or times out
            VaultSyncServerError: If the server answers with 5xx
            VaultSyncRequestError: If the server rejects the request (4xx)
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"API request: {method} {endpoint}")

        if "timeout" not in kwargs:
            kwargs["timeout"] = self.timeout

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.Timeout:
            logger.warning(f"{method} {endpoint} timed out after {kwargs['timeout']}s")
            raise VaultSyncTransportError(f"Request to {self.base_url} timed out")
        except requests.exceptions.ConnectionError as e:
            logger.warning(f"Cannot connect to server at {self.base_url}: {e}")
            raise VaultSyncTransportError(f"Cannot connect to server at {self.base_url}")
        except requests.exceptions.RequestException as e:
            raise VaultSyncTransportError(f"Request error: {str(e)}")

        self._raise_for_status(response, endpoint)

        try:
            return response.json()
        except ValueError:
            raise VaultSyncServerError(f"Invalid JSON in response from {endpoint}", response.status_code)

    def _raise_for_status(self, response: Any, endpoint: str) -> None:
        """
        Raise the exception matching an error response.

        Args:
            response: Response object
            endpoint: Endpoint for log messages
        """
        if response.status_code < 400:
            return

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        if not isinstance(error_data, dict):
            error_data = {}

        code = error_data.get("code")
        message = error_data.get("error") or response.text or f"HTTP {response.status_code}"
        details = error_data.get("details") or {}

        if response.status_code == 409 and code == "CONFLICT":
            logger.info(f"Server reported a conflict on {endpoint}")
            raise VaultSyncConflictError(message, details.get("serverContent"), details.get("serverModified"))
        if response.status_code == 409 and code == "FILE_EXISTS":
            raise VaultSyncFileExistsError(message)
        if response.status_code == 404:
            raise VaultSyncNotFoundError(message)
        if response.status_code >= 500:
            logger.error(f"Server error {response.status_code} on {endpoint}: {message}")
            raise VaultSyncServerError(message, response.status_code)

        logger.warning(f"Request to {endpoint} rejected with {response.status_code} {code}: {message}")
        raise VaultSyncRequestError(message, response.status_code, code, error_data.get("policy"))

    @staticmethod
    def _file_endpoint(path: str) -> str:
        return "/files/" + quote(path.lstrip("/"), safe="/")

    # ---------- endpoints ----------

    def check_health(self) -> bool:
        """
        Check whether the server answers its health endpoint.

        Returns:
            True if the server is reachable and healthy
        """
        try:
            data = self._make_request("GET", "/health")
        except (VaultSyncTransportError, VaultSyncServerError, VaultSyncRequestError) as e:
            logger.debug(f"Health check failed: {e}")
            return False
        return data.get("status") == "healthy"

    def list_files(self, folder: str = "") -> List[Dict[str, Any]]:
        """
        List server files with their version tokens.

        Returns:
            List of {path, name, modified} dicts
        """
        params = {"folder": folder} if folder else None
        return self._make_request("GET", "/files", params=params)

    def read_file(self, path: str) -> Dict[str, Any]:
        """
        Fetch a file's content, version token and policy.

        Returns:
            {content, modified, policy}

        Raises:
            VaultSyncNotFoundError: If the file does not exist
        """
        return self._make_request("GET", self._file_endpoint(path))

    def write_file(self, path: str, content: str, last_modified: Optional[int] = None) -> int:
        """
        Write a file.

        Args:
            path: Vault-relative path
            content: New content
            last_modified: Baseline version; None makes it a force write

        Returns:
            The new version token

        Raises:
            VaultSyncConflictError: If the baseline is stale
        """
        payload: Dict[str, Any] = {"content": content}
        if last_modified is not None:
            payload["lastModified"] = last_modified
        data = self._make_request("PUT", self._file_endpoint(path), json=payload)
        return data["modified"]

    def create_file(self, path: str, content: str = "") -> int:
        """
        Create a new file.

        Returns:
            The new version token

        Raises:
            VaultSyncFileExistsError: If the path is already taken
        """
        data = self._make_request("POST", self._file_endpoint(path), json={"content": content})
        return data["modified"]

    def rename_file(self, source: str, destination: str, last_modified: Optional[int] = None) -> int:
        """
        Rename or move a file.

        Args:
            source: Current vault-relative path
            destination: New vault-relative path
            last_modified: Source version the caller last saw; None skips the check

        Returns:
            The version token at the destination

        Raises:
            VaultSyncNotFoundError: If the source does not exist
            VaultSyncFileExistsError: If the destination is taken
            VaultSyncConflictError: If the source changed since last_modified
        """
        payload: Dict[str, Any] = {"from": source.lstrip("/"), "to": destination.lstrip("/")}
        if last_modified is not None:
            payload["lastModified"] = last_modified
        data = self._make_request("PUT", "/files", json=payload)
        return data["modified"]

    def delete_file(self, path: str) -> bool:
        """
        Delete a file.

        Raises:
            VaultSyncNotFoundError: If the file does not exist
        """
        data = self._make_request("DELETE", self._file_endpoint(path))
        return bool(data.get("success"))

    def get_policy(self, path: str) -> Dict[str, Any]:
        """Fetch the server's effective policy for a path."""
        return self._make_request("GET", "/policy", params={"path": path})
