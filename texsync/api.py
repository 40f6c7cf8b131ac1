"""API client for the GitHub REST and raw-content endpoints."""

from __future__ import annotations

import threading
from typing import Any, BinaryIO, Callable
from urllib.parse import quote

import httpx

from .config import config
from .exceptions import (
    RemoteError,
    RemoteInvalidResponseError,
    RemoteNetworkError,
    RemoteNotFoundError,
    RemoteRateLimitError,
    SyncCancelledError,
)
from .models import TreeListing
from .utils import DEFAULT_CHUNK_SIZE


class GitHubClient:
    """Client for reading one repository through the GitHub API.

    Only read operations are implemented: head commit lookup, tree
    listings and raw file retrieval. Every request carries the configured
    ``User-Agent``. Failed requests are not retried; callers re-run the
    whole operation instead.
    """

    def __init__(
        self,
        repo_owner: str | None = None,
        repo_name: str | None = None,
        token: str | None = None,
        api_url: str | None = None,
        raw_url: str | None = None,
        user_agent: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the GitHub client.

        Args:
            repo_owner: Repository owner (uses config if not provided)
            repo_name: Repository name (uses config if not provided)
            token: Optional API token, raises the anonymous rate limit
            api_url: REST API base URL (uses config if not provided)
            raw_url: Raw content base URL (uses config if not provided)
            user_agent: Client identifier header (uses config if not provided)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport (used by tests)
        """
        self.repo_owner = repo_owner or config.repo_owner
        self.repo_name = repo_name or config.repo_name
        self.token = token if token is not None else config.github_token
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.raw_url = (raw_url or config.raw_url).rstrip("/")
        self.user_agent = user_agent or config.user_agent
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client (shared by worker threads)."""
        with self._client_lock:
            if self._client is None or self._client.is_closed:
                headers = {"User-Agent": self.user_agent}
                if self.token:
                    headers["Authorization"] = f"Bearer {self.token}"
                self._client = httpx.Client(
                    headers=headers,
                    timeout=httpx.Timeout(self.timeout),
                    follow_redirects=True,
                    transport=self._transport,
                )
            return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    @property
    def repo_api_url(self) -> str:
        return f"{self.api_url}/repos/{self.repo_owner}/{self.repo_name}"

    def _handle_http_error(self, response: httpx.Response) -> RemoteError:
        """Map an unsuccessful response to a RemoteError subclass.

        Args:
            response: The failed response (body already read)

        Returns:
            Exception to raise
        """
        status_code = response.status_code
        try:
            body = response.text
        except (httpx.ResponseNotRead, UnicodeDecodeError):
            body = ""

        # Extract the message field GitHub puts in JSON error bodies
        message = body
        try:
            error_data = response.json()
            if isinstance(error_data, dict) and error_data.get("message"):
                message = str(error_data["message"])
        except (ValueError, httpx.ResponseNotRead):
            pass

        if status_code == 404:
            return RemoteNotFoundError(status_code, body, f"Not found: {response.url}")
        if status_code == 429 or (
            status_code == 403
            and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            reset = response.headers.get("X-RateLimit-Reset")
            hint = f" (resets at {reset})" if reset else ""
            return RemoteRateLimitError(
                status_code, body, f"GitHub API rate limit exceeded{hint}: {message}"
            )
        return RemoteError(
            status_code, body, f"GitHub API error: {status_code} - {message}"
        )

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make a REST API request and decode its JSON body.

        Args:
            method: HTTP method
            endpoint: Path relative to the repository API URL
            **kwargs: Additional arguments passed to httpx

        Returns:
            Decoded JSON data

        Raises:
            RemoteError: If the request fails or the body is not JSON
        """
        url = f"{self.repo_api_url}/{endpoint.lstrip('/')}"
        headers = {"Accept": "application/vnd.github.v3+json"}
        client = self._get_client()

        try:
            response = client.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as e:
            raise RemoteNetworkError(f"{method} {url}: {e}") from e

        if not response.is_success:
            raise self._handle_http_error(response)

        try:
            return response.json()
        except ValueError as e:
            raise RemoteInvalidResponseError(
                response.status_code,
                response.text[:200],
                f"Invalid JSON response from {url}",
            ) from e

    # =========================
    # Revision Operations
    # =========================

    def get_latest_commit(self, branch: str | None = None) -> str:
        """Get the head commit SHA of a branch.

        Args:
            branch: Branch name (uses config if not provided)

        Returns:
            Commit SHA

        Raises:
            RemoteError: If the lookup fails
        """
        branch = branch or config.branch
        data = self._request("GET", f"/commits/{quote(branch, safe='')}")
        sha = data.get("sha") if isinstance(data, dict) else None
        if not sha or not isinstance(sha, str):
            raise RemoteInvalidResponseError(
                200, str(data)[:200], f"Commit response for '{branch}' has no sha"
            )
        return sha

    # =========================
    # Tree Operations
    # =========================

    def get_tree(self, tree_sha: str, recursive: bool = False) -> TreeListing:
        """List a git tree.

        Args:
            tree_sha: Tree (or commit) SHA
            recursive: If True, list all descendants in one response

        Returns:
            Parsed tree listing; ``truncated`` is set when GitHub cut a
            recursive listing short

        Raises:
            RemoteError: If the request fails
        """
        params = {"recursive": "1"} if recursive else None
        data = self._request("GET", f"/git/trees/{tree_sha}", params=params)
        return TreeListing.from_api_response(data)

    # =========================
    # Download Operations
    # =========================

    def raw_file_url(self, revision: str, path: str) -> str:
        """Build the raw-content URL of a repository file at a revision."""
        return (
            f"{self.raw_url}/{self.repo_owner}/{self.repo_name}/"
            f"{quote(revision, safe='')}/{quote(path)}"
        )

    def download_raw(
        self,
        revision: str,
        path: str,
        output: BinaryIO,
        progress_callback: Callable[[int, int], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """Stream a repository file at a revision into a binary file object.

        Args:
            revision: Commit SHA (or ref) to read from
            path: File path relative to the repository root
            output: Writable binary file object
            progress_callback: Optional callback function(bytes_downloaded,
                total_bytes)
            cancel_event: Aborts the transfer between chunks when set

        Returns:
            Number of bytes written

        Raises:
            RemoteError: If the request fails
            SyncCancelledError: If cancel_event was set mid-transfer
        """
        url = self.raw_file_url(revision, path)
        client = self._get_client()

        try:
            with client.stream("GET", url) as response:
                if not response.is_success:
                    response.read()
                    raise self._handle_http_error(response)

                total_size = int(response.headers.get("Content-Length", 0))
                bytes_downloaded = 0
                for chunk in response.iter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
                    if cancel_event is not None and cancel_event.is_set():
                        raise SyncCancelledError(f"Download of {path} cancelled")
                    output.write(chunk)
                    bytes_downloaded += len(chunk)
                    if progress_callback:
                        progress_callback(bytes_downloaded, total_size)
                return bytes_downloaded
        except httpx.RequestError as e:
            raise RemoteNetworkError(f"GET {url}: {e}") from e
