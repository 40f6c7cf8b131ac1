"""Core sync engine for planning and executing sync runs."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from ..api import GitHubClient
from ..config import config
from ..exceptions import RemoteError, SyncCancelledError, TransferError
from .comparator import PlannedDownload, ReconciliationEngine, SyncPlan
from .operations import SyncOperations
from .progress import SyncProgressTracker, SyncStage
from .remote import RemoteTreeFetcher
from .scanner import LocalTreeScanner

logger = logging.getLogger(__name__)


def _ancestors(path: str) -> list[str]:
    """Parent directories of a relative path, outermost first."""
    parts = path.split("/")
    return ["/".join(parts[:i]) for i in range(1, len(parts))]


@dataclass(frozen=True)
class SyncResult:
    """Summary of an executed sync."""

    downloaded: int
    deleted: int
    skipped: int
    new_revision: str
    """Revision the local folder now matches; the caller persists it"""

    bytes_downloaded: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class SyncEngine:
    """Core sync engine that orchestrates one-way synchronization.

    A run fetches the remote listing, scans the local folder, reconciles
    both into a SyncPlan and executes it: downloads first, deletions last.
    The first failing item aborts the run. Nothing is cached between runs,
    so re-running after a failure is always safe.

    Examples:
        >>> engine = SyncEngine(GitHubClient())
        >>> plan = engine.plan_only(Path("~/PCSX2/textures").expanduser())
        >>> print(f"{len(plan.to_download)} file(s) to download")
        >>> result = engine.execute(plan, Path("~/PCSX2/textures").expanduser())
    """

    def __init__(
        self,
        client: GitHubClient,
        tracker: Optional[SyncProgressTracker] = None,
        target_folder: Optional[str] = None,
        subtree_path: Optional[str] = None,
        branch: Optional[str] = None,
        max_workers: int = 1,
        fetch_workers: int = 4,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize sync engine.

        Args:
            client: GitHub API client
            tracker: Progress tracker receiving stage notifications
            target_folder: Local folder name under the root
                (uses config if not provided)
            subtree_path: Repository directory mirrored by the target folder
                (uses config if not provided)
            branch: Branch synced when no revision is given
                (uses config if not provided)
            max_workers: Number of parallel downloads (default: 1)
            fetch_workers: Number of parallel tree requests (default: 4)
            cancel_event: Checked between stages and items; set it to abort
        """
        self.client = client
        self.tracker = tracker or SyncProgressTracker()
        self.cancel_event = cancel_event or threading.Event()
        self.max_workers = max(1, max_workers)
        self.fetcher = RemoteTreeFetcher(
            client,
            subtree_path=subtree_path,
            branch=branch,
            max_workers=fetch_workers,
            cancel_event=self.cancel_event,
        )
        self.scanner = LocalTreeScanner(target_folder or config.target_folder)
        self.reconciler = ReconciliationEngine()
        self.operations = SyncOperations(
            client, subtree_path=subtree_path, cancel_event=self.cancel_event
        )

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise SyncCancelledError()

    def plan_only(
        self, local_root: Path, revision: Optional[str] = None
    ) -> SyncPlan:
        """Compute the sync plan without touching the local folder.

        Args:
            local_root: Directory containing the target folder
            revision: Remote revision to compare against (branch head if None)

        Returns:
            SyncPlan bound to the resolved revision
        """
        self._check_cancelled()
        self.tracker.emit(SyncStage.FETCHING, "Fetching repository information...")
        remote_files, revision = self.fetcher.fetch(revision)

        self._check_cancelled()
        self.tracker.emit(
            SyncStage.SCANNING, f"Found {len(remote_files)} files in repository"
        )
        self.tracker.emit(SyncStage.SCANNING, "Scanning local files...")
        local_files = self.scanner.scan(Path(local_root))
        self.tracker.emit(
            SyncStage.SCANNING,
            f"Found {len(local_files)} local files (excluding user-customs)",
        )

        self._check_cancelled()
        plan = self.reconciler.plan(remote_files, local_files, revision)
        self.tracker.emit(
            SyncStage.COMPARING,
            f"Changes: {len(plan.to_download)} files to download, "
            f"{len(plan.to_delete)} to delete, {plan.up_to_date} up to date",
        )
        return plan

    def execute(self, plan: SyncPlan, local_root: Path) -> SyncResult:
        """Execute a sync plan.

        Args:
            plan: Plan from plan_only (must carry its revision)
            local_root: Directory containing the target folder

        Returns:
            SyncResult with the revision the folder now matches

        Raises:
            TransferError: If a download or deletion fails
            SyncCancelledError: If cancelled
        """
        if plan.revision is None:
            raise ValueError("Cannot execute a plan without a revision")

        base_dir = self.scanner.target_dir(Path(local_root))
        start_time = time.time()

        self._check_cancelled()
        swept = self.operations.sweep_partial_downloads(base_dir)
        if swept:
            logger.info(f"Removed {swept} partial download(s) from an earlier run")

        # Deletions that stand where a download must go happen first
        blockers = self._find_blockers(plan)
        deleted = 0
        for path in blockers:
            self._check_cancelled()
            if self._delete_one(path, base_dir):
                deleted += 1

        bytes_downloaded = self._execute_downloads(
            list(plan.to_download), base_dir, plan.revision
        )
        cleared = set(blockers)
        remaining = [path for path in plan.to_delete if path not in cleared]
        deleted += self._execute_deletes(remaining, base_dir)

        downloaded = len(plan.to_download)
        self.tracker.emit(
            SyncStage.COMPLETE,
            f"Sync complete! Downloaded: {downloaded}, Deleted: {deleted}, "
            f"Skipped: {plan.skipped}",
        )
        logger.debug(f"Sync finished in {time.time() - start_time:.2f}s")

        return SyncResult(
            downloaded=downloaded,
            deleted=deleted,
            skipped=plan.skipped,
            new_revision=plan.revision,
            bytes_downloaded=bytes_downloaded,
        )

    def sync(self, local_root: Path, revision: Optional[str] = None) -> SyncResult:
        """Plan and execute a full sync run."""
        plan = self.plan_only(local_root, revision)
        return self.execute(plan, local_root)

    @staticmethod
    def _find_blockers(plan: SyncPlan) -> list[str]:
        """Planned deletions occupying a download target or one of its parents.

        A local file may sit where the repository now has a directory, or a
        local directory where it now has a file. Either blocks the download
        until the stale entry is gone.
        """
        downloads = set(plan.download_paths)
        deletes = set(plan.to_delete)
        blockers = set()
        for path in downloads:
            for ancestor in _ancestors(path):
                if ancestor in deletes:
                    blockers.add(ancestor)
        for path in deletes:
            if any(ancestor in downloads for ancestor in _ancestors(path)):
                blockers.add(path)
        return sorted(blockers)

    def _delete_one(self, path: str, base_dir: Path) -> bool:
        try:
            return self.operations.delete_local(path, base_dir)
        except OSError as e:
            raise TransferError(path, e, action="delete") from e

    def _download_one(
        self, item: PlannedDownload, base_dir: Path, revision: str
    ) -> int:
        self._check_cancelled()
        try:
            return self.operations.download_file(item, base_dir, revision)
        except SyncCancelledError:
            raise
        except (RemoteError, OSError) as e:
            raise TransferError(item.path, e) from e

    def _execute_downloads(
        self, items: list[PlannedDownload], base_dir: Path, revision: str
    ) -> int:
        """Download all planned items, sequentially or on a worker pool.

        Returns:
            Total bytes downloaded
        """
        total = len(items)
        if total == 0:
            return 0

        if self.max_workers == 1 or total == 1:
            bytes_total = 0
            for i, item in enumerate(items, start=1):
                self.tracker.emit(
                    SyncStage.DOWNLOADING, f"Downloading: {item.path}", i, total
                )
                bytes_total += self._download_one(item, base_dir, revision)
            return bytes_total

        logger.debug(f"Downloading {total} file(s) with {self.max_workers} workers")
        counter = 0
        counter_lock = threading.Lock()

        def download_with_progress(item: PlannedDownload) -> int:
            nonlocal counter
            with counter_lock:
                counter += 1
                current = counter
            self.tracker.emit(
                SyncStage.DOWNLOADING, f"Downloading: {item.path}", current, total
            )
            return self._download_one(item, base_dir, revision)

        bytes_total = 0
        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = [executor.submit(download_with_progress, i) for i in items]
            for future in as_completed(futures):
                bytes_total += future.result()
        except KeyboardInterrupt:
            # Abort in-flight transfers instead of waiting for them
            self.cancel_event.set()
            raise
        finally:
            # Stop queued downloads after the first failure
            executor.shutdown(wait=True, cancel_futures=True)
        return bytes_total

    def _execute_deletes(self, paths: list[str], base_dir: Path) -> int:
        """Delete all planned paths.

        Returns:
            Number of files actually deleted
        """
        deleted = 0
        total = len(paths)
        for i, path in enumerate(paths, start=1):
            self._check_cancelled()
            self.tracker.emit(SyncStage.DELETING, f"Deleting: {path}", i, total)
            if self._delete_one(path, base_dir):
                deleted += 1
        return deleted
