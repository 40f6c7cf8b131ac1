"""Remote tree listing with truncation fallback."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from ..api import GitHubClient
from ..config import config
from ..exceptions import PathNotFound, SyncCancelledError

logger = logging.getLogger(__name__)


def _join(prefix: str, name: str) -> str:
    return f"{prefix}/{name}" if prefix else name


class RemoteTreeFetcher:
    """Builds the path -> content id mapping of a remote subtree.

    GitHub truncates recursive tree listings of very large trees. When that
    happens the fetcher lists the truncated node non-recursively and queues
    each child directory as its own node, so no single response has to
    hold the whole subtree. Nodes discovered in the same pass are fetched
    in parallel with a bounded worker pool.

    Examples:
        >>> fetcher = RemoteTreeFetcher(client, "textures/SLUS-21770")
        >>> files, revision = fetcher.fetch()
        >>> files["menus/logo.png"]
        '3b18e512dba79e4c8300dd08aeb37f8e728b8dad'
    """

    def __init__(
        self,
        client: GitHubClient,
        subtree_path: Optional[str] = None,
        branch: Optional[str] = None,
        max_workers: int = 4,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize the fetcher.

        Args:
            client: GitHub API client
            subtree_path: Slash-separated directory inside the repository
                (uses config if not provided, "" for the repository root)
            branch: Branch whose head is synced when no revision is given
                (uses config if not provided)
            max_workers: Maximum parallel tree requests
            cancel_event: Stops the traversal between requests when set
        """
        self.client = client
        if subtree_path is None:
            subtree_path = config.sparse_path
        self.subtree_path = subtree_path.strip("/")
        self.branch = branch or config.branch
        self.max_workers = max(1, max_workers)
        self.cancel_event = cancel_event

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SyncCancelledError("Remote tree fetch cancelled")

    def fetch(self, revision: Optional[str] = None) -> tuple[dict[str, str], str]:
        """Fetch the complete file listing of the subtree.

        Args:
            revision: Commit SHA to list; the branch head is resolved when
                omitted

        Returns:
            Tuple of (mapping of relative path to blob SHA, resolved revision)

        Raises:
            RemoteError: If any API request fails
            PathNotFound: If the subtree path does not exist at the revision
            SyncCancelledError: If cancelled
        """
        if revision is None:
            self._check_cancelled()
            revision = self.client.get_latest_commit(self.branch)
            logger.debug(f"Resolved {self.branch} to {revision}")

        subtree_sha = self.resolve_subtree(revision)
        files = self.list_files(subtree_sha)
        logger.debug(f"Fetched {len(files)} remote file(s) at {revision}")
        return files, revision

    def resolve_subtree(self, root_sha: str) -> str:
        """Walk the subtree path one segment at a time.

        Args:
            root_sha: Commit or tree SHA to start from

        Returns:
            Tree SHA of the subtree

        Raises:
            PathNotFound: If a segment is missing or not a directory
        """
        current_sha = root_sha
        if not self.subtree_path:
            return current_sha

        for segment in self.subtree_path.split("/"):
            self._check_cancelled()
            listing = self.client.get_tree(current_sha, recursive=False)
            entry = listing.find_child_tree(segment)
            if entry is None:
                raise PathNotFound(segment)
            current_sha = entry.sha

        return current_sha

    def _fetch_node(
        self, tree_sha: str, prefix: str
    ) -> tuple[dict[str, str], list[tuple[str, str]]]:
        """Fetch one node of the work queue.

        Returns:
            Tuple of (files found, child (tree_sha, prefix) nodes still to fetch)
        """
        self._check_cancelled()
        files: dict[str, str] = {}
        listing = self.client.get_tree(tree_sha, recursive=True)

        if not listing.truncated:
            for entry in listing.entries:
                if entry.is_blob:
                    files[_join(prefix, entry.path)] = entry.sha
            return files, []

        logger.debug(
            f"Recursive listing of '{prefix or '/'}' truncated, "
            f"falling back to per-directory listing"
        )
        self._check_cancelled()
        listing = self.client.get_tree(tree_sha, recursive=False)
        children: list[tuple[str, str]] = []
        for entry in listing.entries:
            entry_path = _join(prefix, entry.path)
            if entry.is_blob:
                files[entry_path] = entry.sha
            elif entry.is_tree:
                children.append((entry.sha, entry_path))
        return files, children

    def list_files(self, tree_sha: str) -> dict[str, str]:
        """List every blob below a tree, at any depth.

        Args:
            tree_sha: Tree SHA of the subtree root

        Returns:
            Mapping of path relative to the subtree root to blob SHA
        """
        files: dict[str, str] = {}
        pending: list[tuple[str, str]] = [(tree_sha, "")]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            while pending:
                futures = [
                    executor.submit(self._fetch_node, sha, prefix)
                    for sha, prefix in pending
                ]
                pending = []
                try:
                    for future in as_completed(futures):
                        node_files, children = future.result()
                        files.update(node_files)
                        pending.extend(children)
                except BaseException:
                    for future in futures:
                        future.cancel()
                    raise

        return files
