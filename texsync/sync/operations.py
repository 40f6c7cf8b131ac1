"""Per-item filesystem and network effects of a sync."""

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from ..api import GitHubClient
from ..config import config
from .comparator import PlannedDownload
from .policy import is_excluded_subtree

logger = logging.getLogger(__name__)

# Temporary download files live next to their destination
TEMP_PREFIX = ".texsync-"
TEMP_SUFFIX = ".part"


class SyncOperations:
    """Download and delete operations used by the sync engine."""

    def __init__(
        self,
        client: GitHubClient,
        subtree_path: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize sync operations.

        Args:
            client: GitHub API client
            subtree_path: Repository directory mirrored by the local folder
                (uses config if not provided, "" for the repository root)
            cancel_event: Aborts in-flight downloads when set
        """
        self.client = client
        if subtree_path is None:
            subtree_path = config.sparse_path
        self.subtree_path = subtree_path.strip("/")
        self.cancel_event = cancel_event

    def remote_path(self, relative_path: str) -> str:
        """Repository path of a path relative to the subtree."""
        if not self.subtree_path:
            return relative_path
        return f"{self.subtree_path}/{relative_path}"

    def download_file(
        self, item: PlannedDownload, base_dir: Path, revision: str
    ) -> int:
        """Download a planned item into the local folder.

        The content is streamed into a hidden temporary file next to the
        destination and moved into place once complete, so the destination
        never holds partial content.

        Args:
            item: Planned download (target path and remote source path)
            base_dir: Local target folder
            revision: Remote revision to read from

        Returns:
            Number of bytes written
        """
        local_path = base_dir / item.path
        # Ensure parent directory exists
        local_path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=local_path.parent, prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX
        )
        try:
            with os.fdopen(fd, "wb") as f:
                size = self.client.download_raw(
                    revision,
                    self.remote_path(item.source),
                    f,
                    cancel_event=self.cancel_event,
                )
            os.replace(tmp_name, local_path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

        logger.debug(f"Downloaded {item.source} -> {item.path} ({size} bytes)")
        return size

    def delete_local(self, relative_path: str, base_dir: Path) -> bool:
        """Delete a local file and prune directories it leaves empty.

        Args:
            relative_path: Path relative to the local target folder
            base_dir: Local target folder

        Returns:
            True if a file was deleted, False if it was already gone
        """
        local_path = base_dir / relative_path
        try:
            local_path.unlink()
        except FileNotFoundError:
            logger.debug(f"Already deleted: {relative_path}")
            return False

        self._prune_empty_parents(local_path, base_dir)
        return True

    def sweep_partial_downloads(self, base_dir: Path) -> int:
        """Remove temporary files left behind by an interrupted run.

        Args:
            base_dir: Local target folder

        Returns:
            Number of files removed
        """
        removed = 0
        for tmp_path in list(base_dir.rglob(f"{TEMP_PREFIX}*{TEMP_SUFFIX}")):
            if is_excluded_subtree(tmp_path.relative_to(base_dir).as_posix()):
                continue
            if tmp_path.is_symlink() or not tmp_path.is_file():
                continue
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                continue
            logger.debug(f"Removed stale partial download {tmp_path}")
            removed += 1
            self._prune_empty_parents(tmp_path, base_dir)
        return removed

    def _prune_empty_parents(self, path: Path, base_dir: Path) -> None:
        # Never removes base_dir itself
        parent = path.parent
        while parent != base_dir and base_dir in parent.parents:
            try:
                parent.rmdir()
            except OSError:
                # Directory not empty
                return
            logger.debug(f"Removed empty directory {parent}")
            parent = parent.parent
