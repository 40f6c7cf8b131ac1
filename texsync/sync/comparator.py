"""Reconciliation of remote and local tree mappings."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .policy import (
    is_disabled_variant,
    is_excluded_subtree,
    to_disabled_path,
    to_enabled_path,
)


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    DOWNLOAD = "download"
    """Fetch remote content into a local path"""

    DELETE = "delete"
    """Delete a local file that no longer exists remotely"""

    SKIP = "skip"
    """Leave alone on purpose (excluded or user-disabled)"""

    UP_TO_DATE = "up_to_date"
    """Local content already matches"""


@dataclass(frozen=True)
class SyncDecision:
    """Represents a decision about one path."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    relative_path: str
    """Local path the action applies to"""

    source_path: Optional[str] = None
    """Remote path whose content is downloaded (downloads only)"""


@dataclass(frozen=True)
class PlannedDownload:
    """A scheduled download."""

    path: str
    """Local target path, possibly a disabled variant"""

    source: str
    """Remote path the content is fetched from"""


@dataclass(frozen=True)
class SyncPlan:
    """What a sync run would do. Produced once, executed once."""

    to_download: tuple[PlannedDownload, ...] = ()
    to_delete: tuple[str, ...] = ()
    skipped: int = 0
    up_to_date: int = 0
    revision: Optional[str] = None
    """Remote revision the plan was computed against"""

    @property
    def download_paths(self) -> list[str]:
        return [item.path for item in self.to_download]

    @property
    def is_up_to_date(self) -> bool:
        return not self.to_download and not self.to_delete

    @property
    def total(self) -> int:
        return len(self.to_download) + len(self.to_delete)


class ReconciliationEngine:
    """Compares remote and local mappings to determine sync actions.

    Both mappings go from relative path to content id. Decisions are keyed
    on each path's own status; a path present on both sides with the same
    id is up to date regardless of its disabled/enabled partner.
    """

    def compare(
        self, remote: dict[str, str], local: dict[str, str]
    ) -> list[SyncDecision]:
        """Decide what to do with every remote and local path.

        Args:
            remote: Remote mapping of path to content id
            local: Local mapping of path to content id

        Returns:
            List of SyncDecision objects, remote paths first, each group
            sorted by path
        """
        decisions = [
            self._compare_remote_file(path, remote_id, local, remote)
            for path, remote_id in sorted(remote.items())
        ]

        for path in sorted(local):
            decision = self._compare_local_file(path, remote)
            if decision is not None:
                decisions.append(decision)

        return decisions

    def _compare_remote_file(
        self,
        path: str,
        remote_id: str,
        local: dict[str, str],
        remote: dict[str, str],
    ) -> SyncDecision:
        if is_excluded_subtree(path):
            return SyncDecision(SyncAction.SKIP, "Excluded subtree", path)

        if local.get(path) == remote_id:
            return SyncDecision(SyncAction.UP_TO_DATE, "Content matches", path)

        disabled_path = to_disabled_path(path)
        # A tracked remote file at the disabled path is not a user copy
        disabled_id = None if disabled_path in remote else local.get(disabled_path)
        if disabled_id is not None:
            if disabled_id == remote_id:
                return SyncDecision(
                    SyncAction.SKIP, "Disabled copy is up to date", disabled_path
                )
            return SyncDecision(
                SyncAction.DOWNLOAD,
                "Disabled copy is outdated",
                disabled_path,
                source_path=path,
            )

        reason = "Modified remotely" if path in local else "New remote file"
        return SyncDecision(SyncAction.DOWNLOAD, reason, path, source_path=path)

    def _compare_local_file(
        self, path: str, remote: dict[str, str]
    ) -> Optional[SyncDecision]:
        # Paths present remotely were decided by the remote pass
        if is_excluded_subtree(path) or path in remote:
            return None

        if is_disabled_variant(path):
            enabled_path = to_enabled_path(path)
            if enabled_path is not None and enabled_path in remote:
                return None

        return SyncDecision(SyncAction.DELETE, "File deleted from repository", path)

    def plan(
        self,
        remote: dict[str, str],
        local: dict[str, str],
        revision: Optional[str] = None,
    ) -> SyncPlan:
        """Build a sync plan from the two mappings.

        Args:
            remote: Remote mapping of path to content id
            local: Local mapping of path to content id
            revision: Remote revision the remote mapping belongs to

        Returns:
            SyncPlan with downloads and deletions sorted by path
        """
        return build_plan(self.compare(remote, local), revision)


def build_plan(
    decisions: list[SyncDecision], revision: Optional[str] = None
) -> SyncPlan:
    """Aggregate decisions into a SyncPlan.

    A target path is downloaded at most once; a file fetched from its own
    path wins over a copy fetched from another path.
    """
    downloads: dict[str, PlannedDownload] = {}
    deletes: list[str] = []
    skipped = 0
    up_to_date = 0

    for decision in decisions:
        if decision.action == SyncAction.DOWNLOAD:
            item = PlannedDownload(
                path=decision.relative_path,
                source=decision.source_path or decision.relative_path,
            )
            existing = downloads.get(item.path)
            if existing is None or existing.source != existing.path:
                downloads[item.path] = item
        elif decision.action == SyncAction.DELETE:
            deletes.append(decision.relative_path)
        elif decision.action == SyncAction.SKIP:
            skipped += 1
        elif decision.action == SyncAction.UP_TO_DATE:
            up_to_date += 1

    return SyncPlan(
        to_download=tuple(downloads[path] for path in sorted(downloads)),
        to_delete=tuple(sorted(deletes)),
        skipped=skipped,
        up_to_date=up_to_date,
        revision=revision,
    )
